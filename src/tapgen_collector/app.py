"""
FastAPI application factory.

Creates and configures the FastAPI app instance with routers and lifecycle hooks.
"""

from typing import Optional

from fastapi import FastAPI

from tapgen_collector import __version__
from tapgen_collector.api.routers import health
from tapgen_collector.config import Settings, get_settings, load_topology
from tapgen_collector.db.connection import close_async_engine, init_db
from tapgen_collector.logger import get_logger, setup_logging
from tapgen_collector.modbus.catalog import DEVICE_TYPES, unverified_device_types
from tapgen_collector.runtime import AcquisitionRuntime
from tapgen_collector.scheduler.engine import start_scheduler, stop_scheduler
from tapgen_collector.schemas.topology import TopologyConfig

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    topology: Optional[TopologyConfig] = None,
    runtime: Optional[AcquisitionRuntime] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to environment settings)
        topology: Device topology (defaults to the file at settings.topology_path)
        runtime: Pre-built acquisition runtime, mainly for tests

    Returns:
        Configured FastAPI app instance
    """
    if runtime is not None:
        settings = runtime.settings
    settings = settings or get_settings()
    setup_logging(log_level=settings.log_level)

    if runtime is None:
        topology = topology if topology is not None else load_topology(settings.topology_path)
        runtime = AcquisitionRuntime(settings, topology)

    app = FastAPI(
        title="TAPGEN Modbus Collector",
        description="Polls Modbus TCP field devices and stores decoded time-series samples",
        version=__version__
    )
    app.state.settings = settings
    app.state.runtime = runtime

    # Mount routers with /api prefix
    app.include_router(health.router, prefix="/api", tags=["health"])

    # Lifecycle hooks
    @app.on_event("startup")
    async def startup():
        """Initialize services on application startup."""
        logger.info("Starting TAPGEN Modbus Collector")

        device_types = {endpoint.device_type for _, endpoint in runtime.iter_endpoints()}
        for device_type in unverified_device_types(device_types):
            logger.warning(
                f"Word order for device type '{device_type}' ({DEVICE_TYPES[device_type].label}) "
                "has not been verified against hardware"
            )

        if settings.storage_enabled:
            try:
                await init_db(settings)
                logger.info("PostgreSQL database initialized successfully")
            except Exception as e:
                logger.error(f"Failed to initialize database: {e}")
                # Continue startup even if database fails (graceful degradation)

        await start_scheduler(runtime.orchestrator, settings)

    @app.on_event("shutdown")
    async def shutdown():
        """Cleanup resources on application shutdown."""
        logger.info("Shutting down TAPGEN Modbus Collector")
        await stop_scheduler()
        await runtime.close()
        await close_async_engine()

    logger.info("FastAPI application created")
    return app
