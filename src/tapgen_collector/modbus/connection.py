"""
Connection health management.

Tracks per-device connectivity and throttles reconnect attempts. Transport
exceptions stop at this boundary and become boolean outcomes.
"""

import asyncio
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from tapgen_collector.logger import get_logger
from tapgen_collector.modbus.client import RegisterClient, translate_modbus_error

logger = get_logger(__name__)


class ConnectionState(str, Enum):
    UNKNOWN = "unknown"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class ConnectionHealth:
    """
    Mutable connection state of one device.

    `last_failure_at` is on the manager's monotonic clock and drives the
    reconnect throttle; the wall-clock fields are for reporting only.
    """

    def __init__(self, device_name: str):
        self.device_name = device_name
        self.state = ConnectionState.UNKNOWN
        self.last_failure_at: Optional[float] = None
        self.last_failure_time: Optional[datetime] = None
        self.last_success_time: Optional[datetime] = None
        self.consecutive_failures = 0

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def mark_connected(self) -> None:
        self.state = ConnectionState.CONNECTED
        self.last_success_time = datetime.now(timezone.utc)
        self.consecutive_failures = 0

    def mark_failed(self, now: float) -> None:
        self.state = ConnectionState.DISCONNECTED
        self.last_failure_at = now
        self.last_failure_time = datetime.now(timezone.utc)
        self.consecutive_failures += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.device_name,
            "state": self.state.value,
            "connected": self.connected,
            "consecutive_failures": self.consecutive_failures,
            "last_success_at": self.last_success_time,
            "last_failure_at": self.last_failure_time,
        }

    def __repr__(self):
        return f"ConnectionHealth(device={self.device_name}, state={self.state.value})"


class ConnectionHealthManager:
    """
    Keyed connection state store, one entry and one lock per device.

    Operations on two different devices never wait on each other.
    """

    def __init__(
        self,
        clients: Mapping[str, RegisterClient],
        reconnect_interval_ms: int,
        connect_timeout_ms: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self._clients: Dict[str, RegisterClient] = dict(clients)
        self._health: Dict[str, ConnectionHealth] = {
            name: ConnectionHealth(name) for name in self._clients
        }
        self._locks: Dict[str, asyncio.Lock] = {name: asyncio.Lock() for name in self._clients}
        self.reconnect_interval_s = reconnect_interval_ms / 1000.0
        self.connect_timeout_s = connect_timeout_ms / 1000.0 if connect_timeout_ms else None
        self._clock = clock

    def get_client(self, device_name: str) -> Optional[RegisterClient]:
        return self._clients.get(device_name)

    def get_health(self, device_name: str) -> Optional[ConnectionHealth]:
        return self._health.get(device_name)

    def is_connected(self, device_name: str) -> bool:
        health = self._health.get(device_name)
        return health is not None and health.connected

    def device_names(self) -> List[str]:
        return list(self._clients)

    async def ensure_connected(self, device_name: str) -> bool:
        """
        Make sure a device's transport is usable.

        Returns immediately when the device is connected. A disconnected
        device is not retried until the reconnect interval has elapsed
        since its last failure.

        Args:
            device_name: Configured device name

        Returns:
            True if the device is connected, False otherwise
        """
        client = self._clients.get(device_name)
        if client is None:
            logger.error(f"Device not configured: {device_name}")
            return False

        health = self._health[device_name]
        if health.connected:
            return True

        async with self._locks[device_name]:
            # another task may have reconnected while we waited for the lock
            if health.connected:
                return True

            now = self._clock()
            if (
                health.last_failure_at is not None
                and now - health.last_failure_at < self.reconnect_interval_s
            ):
                logger.debug(
                    f"Skipping reconnect for '{device_name}': "
                    f"last failure {now - health.last_failure_at:.1f}s ago"
                )
                return False

            try:
                client.close()
                if self.connect_timeout_s:
                    await asyncio.wait_for(client.connect(), timeout=self.connect_timeout_s)
                else:
                    await client.connect()
            except Exception as e:
                health.mark_failed(self._clock())
                _, message = translate_modbus_error(e, host=client.host, port=client.port)
                logger.warning(f"Device connection failed: {device_name} - {message}")
                return False

            health.mark_connected()
            logger.info(f"Device connected: {device_name} ({client.host}:{client.port})")
            return True

    def report_outcome(self, device_name: str, success: bool) -> None:
        """
        Record the outcome of an actual register read.

        A device can pass ensure_connected and still fail the read; that
        failure flips it to disconnected and restarts the throttle window.
        """
        health = self._health.get(device_name)
        if health is None:
            logger.error(f"Cannot report outcome for unconfigured device: {device_name}")
            return

        if success:
            if not health.connected:
                logger.info(f"Device '{device_name}' is back online")
            health.mark_connected()
        else:
            if health.connected:
                logger.warning(f"Device '{device_name}' marked disconnected after failed read")
            health.mark_failed(self._clock())

    def snapshot(self) -> List[Dict[str, Any]]:
        """Current health of every configured device."""
        return [health.to_dict() for health in self._health.values()]

    async def close_all(self) -> None:
        """Close every transport; called on shutdown."""
        for device_name, client in self._clients.items():
            try:
                client.close()
            except Exception as e:
                logger.warning(f"Error closing client for '{device_name}': {e}")
        logger.info(f"Closed {len(self._clients)} Modbus client(s)")
