"""
Application configuration using Pydantic Settings.

Environment-driven settings plus the JSON device topology file.
"""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tapgen_collector.logger import get_logger
from tapgen_collector.schemas.topology import TopologyConfig
from tapgen_collector.utils.exceptions import ConfigurationError

logger = get_logger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Polling / transport configuration
    poll_interval_ms: int = Field(default=10000, gt=0, alias="POLL_INTERVAL_MS")
    connect_timeout_ms: int = Field(default=3000, gt=0, alias="MODBUS_CONNECT_TIMEOUT_MS")
    read_timeout_ms: int = Field(default=3000, gt=0, alias="MODBUS_READ_TIMEOUT_MS")
    retries: int = Field(default=2, ge=0, alias="MODBUS_RETRIES")
    reconnect_interval_ms: int = Field(default=5000, ge=0, alias="MODBUS_RECONNECT_INTERVAL_MS")
    max_concurrent_reads: int = Field(default=32, ge=1, alias="MAX_CONCURRENT_READS")
    topology_path: str = Field(default="config/device_groups.json", alias="TOPOLOGY_PATH")

    # Scheduler Configuration
    scheduler_enabled: bool = Field(default=True, alias="SCHEDULER_ENABLED")
    scheduler_max_instances: int = Field(default=2, ge=1, alias="SCHEDULER_MAX_INSTANCES")

    # Sink Configuration
    storage_enabled: bool = Field(default=True, alias="STORAGE_ENABLED")
    csv_export_enabled: bool = Field(default=True, alias="CSV_EXPORT_ENABLED")
    csv_export_dir: str = Field(default=".", alias="CSV_EXPORT_DIR")

    # Server Configuration
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database Configuration
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")
    postgres_db: str = Field(default="tapgen", alias="POSTGRES_DB")
    postgres_user: str = Field(default="tapgen_user", alias="POSTGRES_USER")
    postgres_password: str = Field(default="tapgen_password", alias="POSTGRES_PASSWORD")
    database_pool_size: int = Field(default=10, alias="DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(default=20, alias="DATABASE_MAX_OVERFLOW")

    @property
    def database_url(self) -> str:
        """Build PostgreSQL connection URL for the asyncpg driver."""
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def connect_timeout_s(self) -> float:
        return self.connect_timeout_ms / 1000.0


def load_topology(path: Union[str, Path]) -> TopologyConfig:
    """
    Load the device groups topology from a JSON file.

    A missing file yields an empty topology so the service can still start
    and report health; a malformed file is a configuration error.

    Args:
        path: Path to the topology JSON file

    Returns:
        Validated TopologyConfig

    Raises:
        ConfigurationError: If the file is not valid JSON or fails validation
    """
    topology_path = Path(path)
    if not topology_path.exists():
        logger.warning(f"Topology file not found: {topology_path}, no devices will be polled")
        return TopologyConfig()

    try:
        with open(topology_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in topology file {topology_path}: {e}") from e

    try:
        topology = TopologyConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid topology in {topology_path}: {e}") from e

    device_count = sum(len(group.devices) for group in topology.groups)
    logger.info(
        f"Loaded {len(topology.groups)} group(s) with {device_count} device(s) from {topology_path}"
    )
    return topology


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
