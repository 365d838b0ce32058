"""TAPGEN Modbus acquisition service."""

__version__ = "1.0.0"
