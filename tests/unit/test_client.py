"""
Unit tests for the pymodbus-backed register client and error translation.

Run with: pytest tests/unit/test_client.py -v
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymodbus.exceptions import ConnectionException, ModbusException

from tapgen_collector.modbus.client import RegisterClient, translate_modbus_error
from tapgen_collector.utils.exceptions import RegisterReadError


def test_translate_connection_error():
    status_code, message = translate_modbus_error(ConnectionException("down"), host="10.0.0.1", port=502)
    assert status_code == 503
    assert "10.0.0.1:502" in message


def test_translate_exception_response_code():
    error = RegisterReadError("read failed", exception_code=2)
    status_code, message = translate_modbus_error(error)
    assert status_code == 400
    assert message.startswith("Illegal data address")


def test_translate_other_errors():
    assert translate_modbus_error(ModbusException("bad frame"))[0] == 400
    assert translate_modbus_error(TimeoutError(), host="h", port=1)[0] == 504
    assert translate_modbus_error(RuntimeError("boom"))[0] == 500


@pytest.mark.asyncio
async def test_read_without_connect_raises():
    client = RegisterClient("127.0.0.1")
    with pytest.raises(ConnectionException):
        await client.read_words(1, 0, 2)


@pytest.mark.asyncio
async def test_connect_and_read_words():
    """The client builds the pymodbus client lazily and returns raw registers."""
    pymodbus_client = MagicMock()
    pymodbus_client.connect = AsyncMock(return_value=True)
    pymodbus_client.connected = True
    response = MagicMock()
    response.isError.return_value = False
    response.registers = [1, 2, 3]
    pymodbus_client.read_holding_registers = AsyncMock(return_value=response)

    with patch("tapgen_collector.modbus.client.AsyncModbusTcpClient", return_value=pymodbus_client) as factory:
        client = RegisterClient("10.0.0.5", port=1502, timeout_s=1.5, retries=1)
        await client.connect()
        words = await client.read_words(7, 100, 3)

    factory.assert_called_once_with("10.0.0.5", port=1502, timeout=1.5, retries=1, reconnect_delay=0)
    pymodbus_client.read_holding_registers.assert_awaited_once_with(100, count=3, device_id=7)
    assert words == [1, 2, 3]
    assert client.connected


@pytest.mark.asyncio
async def test_connect_failure_raises():
    pymodbus_client = MagicMock()
    pymodbus_client.connect = AsyncMock(return_value=False)

    with patch("tapgen_collector.modbus.client.AsyncModbusTcpClient", return_value=pymodbus_client):
        client = RegisterClient("10.0.0.5")
        with pytest.raises(ConnectionException):
            await client.connect()


@pytest.mark.asyncio
async def test_exception_response_raises_register_read_error():
    pymodbus_client = MagicMock()
    pymodbus_client.connect = AsyncMock(return_value=True)
    response = MagicMock()
    response.isError.return_value = True
    response.exception_code = 2
    pymodbus_client.read_holding_registers = AsyncMock(return_value=response)

    with patch("tapgen_collector.modbus.client.AsyncModbusTcpClient", return_value=pymodbus_client):
        client = RegisterClient("10.0.0.5")
        await client.connect()
        with pytest.raises(RegisterReadError) as exc_info:
            await client.read_words(1, 0, 2)

    assert exc_info.value.exception_code == 2


def test_close_before_connect_is_noop():
    client = RegisterClient("10.0.0.5")
    client.close()
    assert not client.connected
