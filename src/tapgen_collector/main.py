"""
Application entrypoint.

Uvicorn ASGI server running the app factory.
"""

import uvicorn

from tapgen_collector.config import get_settings
from tapgen_collector.logger import get_logger, setup_logging

logger = get_logger(__name__)


def main() -> None:
    settings = get_settings()
    setup_logging(log_level=settings.log_level)
    logger.info(f"Starting TAPGEN Modbus Collector on {settings.api_host}:{settings.api_port}")
    # single worker: every process would run its own polling scheduler
    uvicorn.run(
        "tapgen_collector.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        workers=1,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
