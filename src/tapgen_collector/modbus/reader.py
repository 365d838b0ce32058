"""
Device reader.

One batched register read per device, decoded into samples using the
register catalog. Failure is expressed as an empty sample list.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Sequence, Tuple

from tapgen_collector.logger import get_logger
from tapgen_collector.modbus.client import translate_modbus_error
from tapgen_collector.modbus.codec import decode, scale_and_round
from tapgen_collector.modbus.connection import ConnectionHealthManager
from tapgen_collector.schemas.modbus_models import RegisterPoint, Sample
from tapgen_collector.schemas.topology import DeviceEndpoint

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def compute_read_window(points: Sequence[RegisterPoint]) -> Tuple[int, int]:
    """
    Smallest contiguous register window covering all points.

    Returns:
        Tuple of (start_address, count)

    Raises:
        ValueError: If points is empty
    """
    if not points:
        raise ValueError("Cannot compute a read window for zero points")
    start = min(point.address for point in points)
    end = max(point.address + point.word_count for point in points)
    return start, end - start


class DeviceReader:
    """Reads and decodes all catalog points of one device in a single request."""

    def __init__(
        self,
        health_manager: ConnectionHealthManager,
        read_timeout_ms: int,
        clock: Callable[[], datetime] = utc_now
    ):
        self.health_manager = health_manager
        self.read_timeout_s = read_timeout_ms / 1000.0
        self._clock = clock

    async def read(
        self,
        endpoint: DeviceEndpoint,
        points: Sequence[RegisterPoint],
        group: str = ""
    ) -> List[Sample]:
        """
        Poll one device.

        Args:
            endpoint: Device to read from
            points: Catalog points of the device's type
            group: Group name stamped on the samples

        Returns:
            One sample per point, or an empty list if the device could not
            be read this cycle. Never raises.
        """
        device_name = endpoint.name

        if not points:
            logger.warning(
                f"No register points for device '{device_name}' "
                f"(device_type='{endpoint.device_type}'), skipping"
            )
            return []

        if not await self.health_manager.ensure_connected(device_name):
            logger.warning(f"Device not connected, skipping read: {device_name}")
            return []

        client = self.health_manager.get_client(device_name)
        start, count = compute_read_window(points)
        timestamp = self._clock()

        logger.debug(
            f"Reading Modbus registers for device '{device_name}': "
            f"address={start}, count={count}, slave_id={endpoint.slave_id}"
        )

        try:
            words = await asyncio.wait_for(
                client.read_words(endpoint.slave_id, start, count),
                timeout=self.read_timeout_s
            )
        except Exception as e:
            status_code, error_message = translate_modbus_error(e, host=endpoint.host, port=endpoint.port)
            logger.warning(
                f"Error reading device '{device_name}': "
                f"status_code={status_code}, error_message={error_message}"
            )
            self.health_manager.report_outcome(device_name, False)
            return []

        if len(words) < count:
            logger.warning(
                f"Short read from device '{device_name}': requested {count} registers, got {len(words)}"
            )
            self.health_manager.report_outcome(device_name, False)
            return []

        self.health_manager.report_outcome(device_name, True)

        samples: List[Sample] = []
        for point in points:
            raw = decode(point.encoding, words, point.address - start)
            value = scale_and_round(raw, point.scale)
            samples.append(
                Sample(
                    group=group,
                    device=device_name,
                    device_type=endpoint.device_type,
                    code=point.code,
                    display_name=point.display_name,
                    unit=point.unit,
                    value=value,
                    timestamp=timestamp,
                )
            )
            logger.debug(
                f"Decoded '{device_name}.{point.code}' (address={point.address}): raw={raw}, value={value}"
            )

        logger.info(f"Successfully read {len(samples)} point(s) from device '{device_name}'")
        return samples
