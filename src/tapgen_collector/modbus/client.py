"""
Modbus TCP Client Module

Per-device register client over pymodbus, plus error translation.
Connection lifecycle decisions (when to reconnect) belong to the
connection health manager, not to this module.
"""

from typing import List, Optional, Tuple

from pymodbus.client import AsyncModbusTcpClient
from pymodbus.exceptions import ModbusException, ConnectionException

from tapgen_collector.logger import get_logger
from tapgen_collector.utils.exceptions import RegisterReadError

logger = get_logger(__name__)

__all__ = ["RegisterClient", "translate_modbus_error", "MODBUS_EXCEPTION_MESSAGES"]

MODBUS_EXCEPTION_MESSAGES = {
    1: "Illegal function - The function code received is not supported",
    2: "Illegal data address - The data address received is not valid",
    3: "Illegal data value - The value in the request is not valid",
    4: "Server device failure - The server encountered an error processing the request",
}


def translate_modbus_error(
    error: BaseException,
    host: Optional[str] = None,
    port: Optional[int] = None
) -> Tuple[int, str]:
    """
    Translate Modbus exceptions into HTTP-style status codes and messages.

    Args:
        error: The exception raised during a Modbus operation
        host: Modbus server hostname or IP address (for error messages)
        port: Modbus server port (for error messages)

    Returns:
        Tuple of (status code, error message)
    """
    if isinstance(error, ConnectionException):
        return (
            503,
            f"Failed to connect to Modbus server at {host}:{port}"
        )
    if isinstance(error, RegisterReadError):
        if error.exception_code is not None:
            message = MODBUS_EXCEPTION_MESSAGES.get(
                error.exception_code, f"Modbus error code: {error.exception_code}"
            )
            return 400, message
        return 400, f"Modbus error: {error.message}"
    if isinstance(error, ModbusException):
        return (
            400,
            f"Modbus error: {str(error)}"
        )
    if isinstance(error, TimeoutError):
        return (
            504,
            f"Request to {host}:{port} timed out"
        )
    return (
        500,
        f"Unexpected error: {str(error)}"
    )


class RegisterClient:
    """
    Long-lived register client for one device endpoint.

    Not safe for concurrent use: callers must serialize requests per device.
    """

    def __init__(self, host: str, port: int = 502, timeout_s: float = 3.0, retries: int = 2):
        self.host = host
        self.port = port
        self.timeout_s = timeout_s
        self.retries = retries
        self._client: Optional[AsyncModbusTcpClient] = None

    @property
    def connected(self) -> bool:
        return self._client is not None and self._client.connected

    async def connect(self) -> None:
        """
        Open the TCP connection.

        Raises:
            ConnectionException: If the connection cannot be established
        """
        if self._client is None:
            # reconnect_delay=0 disables pymodbus' background reconnect loop
            self._client = AsyncModbusTcpClient(
                self.host,
                port=self.port,
                timeout=self.timeout_s,
                retries=self.retries,
                reconnect_delay=0,
            )
        if not await self._client.connect():
            raise ConnectionException(f"Failed to connect to Modbus server at {self.host}:{self.port}")

    async def read_words(self, unit_id: int, address: int, count: int) -> List[int]:
        """
        Read `count` holding registers starting at `address`.

        Args:
            unit_id: Modbus unit/slave ID
            address: Starting register address
            count: Number of registers to read

        Returns:
            List of raw 16-bit register words

        Raises:
            ConnectionException: If the client is not connected
            RegisterReadError: If the device answers with an exception response
            ModbusException: For other protocol-level failures
        """
        if self._client is None:
            raise ConnectionException(f"Modbus client for {self.host}:{self.port} is not connected")

        result = await self._client.read_holding_registers(address, count=count, device_id=unit_id)
        if result.isError():
            exception_code = getattr(result, "exception_code", None)
            raise RegisterReadError(
                f"Read of {count} register(s) at {address} from unit {unit_id} failed: {result}",
                exception_code=exception_code,
                payload={"host": self.host, "port": self.port, "unit_id": unit_id},
            )
        return list(result.registers)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def __repr__(self):
        return f"RegisterClient(host={self.host}, port={self.port}, connected={self.connected})"
