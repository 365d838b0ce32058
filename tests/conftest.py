"""
Shared test fixtures: in-memory register clients and recording sinks.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest
from pymodbus.exceptions import ConnectionException

from tapgen_collector.config import Settings
from tapgen_collector.modbus.catalog import RegisterCatalog
from tapgen_collector.modbus.connection import ConnectionHealthManager
from tapgen_collector.modbus.reader import DeviceReader
from tapgen_collector.schemas.modbus_models import Encoding, RegisterPoint, Sample
from tapgen_collector.schemas.topology import DeviceEndpoint, DeviceGroup, TopologyConfig


class FakeRegisterClient:
    """
    Stand-in for RegisterClient backed by a dict of register words.

    Can be told to refuse connections, raise on reads, return short reads,
    or block each read until `read_gate` is set.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 502,
        timeout_s: float = 3.0,
        retries: int = 2,
        registers: Optional[Dict[int, int]] = None,
        fail_connect: bool = False,
        read_error: Optional[BaseException] = None,
        short_by: int = 0,
        read_delay: float = 0.0,
        read_gate: Optional[asyncio.Event] = None
    ):
        self.host = host
        self.port = port
        self.timeout_s = timeout_s
        self.retries = retries
        self.registers = registers or {}
        self.fail_connect = fail_connect
        self.read_error = read_error
        self.short_by = short_by
        self.read_delay = read_delay
        self.read_gate = read_gate

        self._connected = False
        self.connect_calls = 0
        self.close_calls = 0
        self.read_calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.fail_connect:
            raise ConnectionException(f"connection refused by {self.host}:{self.port}")
        self._connected = True

    async def read_words(self, unit_id: int, address: int, count: int) -> List[int]:
        self.read_calls.append((unit_id, address, count))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.read_gate is not None:
                await self.read_gate.wait()
            if self.read_delay:
                await asyncio.sleep(self.read_delay)
            if self.read_error is not None:
                raise self.read_error
            words = [self.registers.get(address + i, 0) for i in range(count)]
            return words[:count - self.short_by] if self.short_by else words
        finally:
            self.in_flight -= 1

    def close(self) -> None:
        self.close_calls += 1
        self._connected = False


class RecordingSink:
    """Sink that remembers every batch it receives."""

    def __init__(self, name: str = "recording", error: Optional[BaseException] = None):
        self.name = name
        self.error = error
        self.batches: List[List[Sample]] = []

    async def write(self, batch: List[Sample]) -> int:
        self.batches.append(list(batch))
        if self.error is not None:
            raise self.error
        return len(batch)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


FIXED_TIMESTAMP = datetime(2024, 5, 17, 8, 30, 15, tzinfo=timezone.utc)

FLOW_POINT = RegisterPoint(
    device_type="test_flow",
    code="flow",
    display_name="Flow",
    address=0,
    word_count=2,
    encoding=Encoding.INT32,
    scale=0.001,
    unit="L",
)


def make_endpoint(name: str, device_type: str = "test_flow", slave_id: int = 1) -> DeviceEndpoint:
    return DeviceEndpoint(name=name, host=f"{name}.local", port=502, slave_id=slave_id, device_type=device_type)


def make_reader(clients, clock=None, reconnect_interval_ms: int = 5000, read_timeout_ms: int = 1000):
    manager = ConnectionHealthManager(
        clients,
        reconnect_interval_ms=reconnect_interval_ms,
        clock=clock or FakeClock(),
    )
    return DeviceReader(manager, read_timeout_ms=read_timeout_ms, clock=lambda: FIXED_TIMESTAMP)


@pytest.fixture
def flow_catalog():
    """Catalog with one INT32 'flow' point scaled by 0.001."""
    return RegisterCatalog([FLOW_POINT])


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def test_settings(tmp_path):
    """Settings with every external side effect switched off."""
    return Settings(
        scheduler_enabled=False,
        storage_enabled=False,
        csv_export_enabled=False,
        csv_export_dir=str(tmp_path),
        topology_path=str(tmp_path / "missing.json"),
        reconnect_interval_ms=5000,
        read_timeout_ms=1000,
    )


@pytest.fixture
def site1_topology():
    return TopologyConfig(
        groups=[
            DeviceGroup(name="site1", devices=[make_endpoint("deviceA"), make_endpoint("deviceB")]),
        ]
    )
