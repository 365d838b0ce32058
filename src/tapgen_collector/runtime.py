"""
Acquisition runtime.

Wires the topology into per-device clients, the connection health manager,
the device reader, the sinks and the polling orchestrator.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from tapgen_collector.config import Settings
from tapgen_collector.db.connection import get_async_session_factory
from tapgen_collector.logger import get_logger
from tapgen_collector.modbus.catalog import DEFAULT_CATALOG, RegisterCatalog
from tapgen_collector.modbus.client import RegisterClient
from tapgen_collector.modbus.connection import ConnectionHealthManager
from tapgen_collector.modbus.reader import DeviceReader
from tapgen_collector.scheduler.jobs import PollingOrchestrator
from tapgen_collector.schemas.topology import DeviceEndpoint, TopologyConfig
from tapgen_collector.sinks.base import BatchSink
from tapgen_collector.sinks.csv_export import CsvExportSink
from tapgen_collector.sinks.database import DatabaseSink
from tapgen_collector.utils.exceptions import DeviceNotConfiguredError

logger = get_logger(__name__)

ClientFactory = Callable[..., RegisterClient]


class AcquisitionRuntime:
    """Everything one polling process needs, built once from settings and topology."""

    def __init__(
        self,
        settings: Settings,
        topology: TopologyConfig,
        catalog: RegisterCatalog = DEFAULT_CATALOG,
        sinks: Optional[Sequence[BatchSink]] = None,
        client_factory: ClientFactory = RegisterClient
    ):
        self.settings = settings
        self.topology = topology
        self.catalog = catalog

        self._endpoints: Dict[str, Tuple[str, DeviceEndpoint]] = {}
        clients: Dict[str, RegisterClient] = {}
        for group_name, endpoint in topology.iter_devices():
            if endpoint.device_type not in catalog:
                logger.warning(
                    f"Device '{endpoint.name}' has unknown device_type '{endpoint.device_type}', "
                    "it will be polled with zero points"
                )
            self._endpoints[endpoint.name] = (group_name, endpoint)
            clients[endpoint.name] = client_factory(
                endpoint.host,
                port=endpoint.port,
                timeout_s=settings.connect_timeout_s,
                retries=settings.retries,
            )

        self.health_manager = ConnectionHealthManager(
            clients,
            reconnect_interval_ms=settings.reconnect_interval_ms,
            connect_timeout_ms=settings.connect_timeout_ms,
        )
        self.reader = DeviceReader(self.health_manager, read_timeout_ms=settings.read_timeout_ms)
        self.sinks: List[BatchSink] = list(sinks) if sinks is not None else self._default_sinks()
        self.orchestrator = PollingOrchestrator(
            topology.groups,
            self.reader,
            catalog=catalog,
            sinks=self.sinks,
            max_concurrent_reads=settings.max_concurrent_reads,
        )
        logger.info(
            f"Acquisition runtime ready: {len(topology.groups)} group(s), "
            f"{len(self._endpoints)} device(s), sinks={[sink.name for sink in self.sinks]}"
        )

    def _default_sinks(self) -> List[BatchSink]:
        sinks: List[BatchSink] = []
        if self.settings.storage_enabled:
            sinks.append(DatabaseSink(get_async_session_factory(self.settings)))
        if self.settings.csv_export_enabled:
            sinks.append(CsvExportSink(self.settings.csv_export_dir, self.topology.groups, self.catalog))
        return sinks

    def device_count(self) -> int:
        return len(self._endpoints)

    def iter_endpoints(self):
        """Yield (group_name, endpoint) for every configured device."""
        return iter(self._endpoints.values())

    def get_endpoint(self, device_name: str) -> Tuple[str, DeviceEndpoint]:
        """
        Look up a configured device.

        Raises:
            DeviceNotConfiguredError: If no device has that name
        """
        try:
            return self._endpoints[device_name]
        except KeyError:
            raise DeviceNotConfiguredError(
                f"Device '{device_name}' is not configured",
                payload={"device": device_name},
            ) from None

    async def run_once(self):
        """Run a single poll tick outside the scheduler."""
        return await self.orchestrator.run_tick()

    async def close(self) -> None:
        await self.health_manager.close_all()
