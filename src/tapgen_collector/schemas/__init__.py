"""Schemas package: register/sample models, topology models and API models."""

from tapgen_collector.schemas.modbus_models import (
    Encoding,
    RegisterPoint,
    Sample,
    SINGLE_WORD_ENCODINGS,
)
from tapgen_collector.schemas.topology import DeviceEndpoint, DeviceGroup, TopologyConfig
from tapgen_collector.schemas.api_models import (
    HealthResponse,
    DeviceHealthResponse,
    DevicesHealthResponse,
)

__all__ = [
    "Encoding",
    "RegisterPoint",
    "Sample",
    "SINGLE_WORD_ENCODINGS",
    "DeviceEndpoint",
    "DeviceGroup",
    "TopologyConfig",
    "HealthResponse",
    "DeviceHealthResponse",
    "DevicesHealthResponse",
]
