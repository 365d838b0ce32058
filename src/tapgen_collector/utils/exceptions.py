"""
Custom application exceptions.

Provides a structured way to handle errors across the acquisition layers.
"""

from typing import Any, Optional, Dict
from fastapi import status


class AppError(Exception):
    """Base class for all application errors."""
    http_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload


class ConfigurationError(AppError):
    """Raised when the register catalog or the device topology is inconsistent."""
    http_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class DeviceNotConfiguredError(AppError):
    """Raised when a device name has no configured endpoint."""
    http_status_code = status.HTTP_404_NOT_FOUND


class RegisterReadError(AppError):
    """Raised when a device answers a register read with a Modbus exception response."""
    http_status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        exception_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, payload)
        self.exception_code = exception_code
