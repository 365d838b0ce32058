"""Modbus acquisition: catalog, codec, transport client, connection health and device reader."""

from tapgen_collector.modbus.catalog import DEFAULT_CATALOG, DEVICE_TYPES, RegisterCatalog
from tapgen_collector.modbus.client import RegisterClient, translate_modbus_error
from tapgen_collector.modbus.codec import decode, scale_and_round
from tapgen_collector.modbus.connection import ConnectionHealthManager, ConnectionState
from tapgen_collector.modbus.reader import DeviceReader, compute_read_window

__all__ = [
    "DEFAULT_CATALOG",
    "DEVICE_TYPES",
    "RegisterCatalog",
    "RegisterClient",
    "translate_modbus_error",
    "decode",
    "scale_and_round",
    "ConnectionHealthManager",
    "ConnectionState",
    "DeviceReader",
    "compute_read_window",
]
