"""Polling jobs for Modbus data collection."""

import asyncio
from typing import Dict, Iterable, List, Optional, Sequence, Set

from tapgen_collector.logger import get_logger
from tapgen_collector.modbus.catalog import DEFAULT_CATALOG, RegisterCatalog
from tapgen_collector.modbus.reader import DeviceReader
from tapgen_collector.schemas.modbus_models import Sample
from tapgen_collector.schemas.topology import DeviceEndpoint, DeviceGroup
from tapgen_collector.sinks.base import BatchSink

logger = get_logger(__name__)


class PollingOrchestrator:
    """
    Fans one poll tick out across all groups and their devices.

    Groups run concurrently, and so do the devices inside a group. Each group's
    samples are concatenated into one batch that every sink receives once.
    A device whose read from an earlier tick is still in flight is skipped
    for the new tick (dropped, not queued), so a transport handle never
    carries two concurrent requests.
    """

    def __init__(
        self,
        groups: Iterable[DeviceGroup],
        reader: DeviceReader,
        catalog: RegisterCatalog = DEFAULT_CATALOG,
        sinks: Sequence[BatchSink] = (),
        max_concurrent_reads: int = 32
    ):
        self.groups: List[DeviceGroup] = list(groups)
        self.reader = reader
        self.catalog = catalog
        self.sinks: List[BatchSink] = list(sinks)
        self._semaphore = asyncio.Semaphore(max_concurrent_reads)
        self._in_flight: Set[str] = set()
        self.running_ticks = 0
        self.tick_count = 0

    @property
    def state(self) -> str:
        return "running" if self.running_ticks else "idle"

    def in_flight_devices(self) -> List[str]:
        return sorted(self._in_flight)

    async def run_tick(self) -> Dict[str, List[Sample]]:
        """
        Execute one poll across every configured group.

        Returns:
            Mapping of group name to the batch forwarded to the sinks.
            Never raises; a failing group yields an empty batch.
        """
        self.running_ticks += 1
        logger.info(f"=== Starting poll tick for {len(self.groups)} group(s) ===")

        try:
            results = await asyncio.gather(
                *[self.poll_group(group) for group in self.groups],
                return_exceptions=True
            )
        finally:
            self.running_ticks -= 1
            self.tick_count += 1

        batches: Dict[str, List[Sample]] = {}
        for group, result in zip(self.groups, results):
            if isinstance(result, BaseException):
                logger.error(f"Unexpected error polling group '{group.name}': {result}", exc_info=result)
                batches[group.name] = []
            else:
                batches[group.name] = result

        total_samples = sum(len(batch) for batch in batches.values())
        logger.info(f"Poll tick completed: {total_samples} sample(s) across {len(batches)} group(s)")
        return batches

    async def poll_group(self, group: DeviceGroup) -> List[Sample]:
        """
        Poll every device of one group and forward the group batch.

        Args:
            group: Group to poll

        Returns:
            The group's complete batch (possibly empty)
        """
        logger.debug(f"Polling group '{group.name}' ({len(group.devices)} device(s))")

        results = await asyncio.gather(
            *[self._poll_device(group.name, device) for device in group.devices],
            return_exceptions=True
        )

        batch: List[Sample] = []
        successful_devices = 0
        failed_devices = 0
        skipped_devices = 0
        for device, result in zip(group.devices, results):
            if isinstance(result, BaseException):
                logger.error(f"Unexpected error polling device '{device.name}': {result}", exc_info=result)
                failed_devices += 1
            elif result is None:
                skipped_devices += 1
            elif result:
                successful_devices += 1
                batch.extend(result)
            else:
                failed_devices += 1

        await self._dispatch(group.name, batch)

        logger.info(
            f"Group '{group.name}' polling completed: "
            f"{successful_devices} device(s) successful, {failed_devices} device(s) failed, "
            f"{skipped_devices} device(s) skipped | {len(batch)} sample(s)"
        )
        return batch

    async def _poll_device(self, group_name: str, endpoint: DeviceEndpoint) -> Optional[List[Sample]]:
        """Read one device; None means the device was skipped because it is busy."""
        if endpoint.name in self._in_flight:
            logger.warning(
                f"Skipping device '{endpoint.name}' in group '{group_name}': "
                "previous read still in flight"
            )
            return None

        points = self.catalog.points_for(endpoint.device_type)
        self._in_flight.add(endpoint.name)
        try:
            async with self._semaphore:
                return await self.reader.read(endpoint, points, group=group_name)
        except Exception as e:
            logger.error(f"Error polling device '{endpoint.name}': {e}", exc_info=True)
            return []
        finally:
            self._in_flight.discard(endpoint.name)

    async def _dispatch(self, group_name: str, batch: List[Sample]) -> None:
        """Hand every sink its own copy of the group batch; sinks fail independently."""
        if not self.sinks:
            return

        results = await asyncio.gather(
            *[sink.write(list(batch)) for sink in self.sinks],
            return_exceptions=True
        )
        for sink, result in zip(self.sinks, results):
            sink_name = getattr(sink, "name", type(sink).__name__)
            if isinstance(result, BaseException):
                logger.error(
                    f"Sink '{sink_name}' failed for group '{group_name}': {result}",
                    exc_info=result
                )
            else:
                logger.debug(f"Sink '{sink_name}' accepted {result} sample(s) for group '{group_name}'")
