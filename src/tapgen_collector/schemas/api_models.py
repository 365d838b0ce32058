"""Response models for the health API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Response model for the liveness check"""
    ok: bool
    groups: int
    devices: int
    devices_connected: int
    scheduler_running: bool
    ticks_completed: int
    database_ok: Optional[bool] = None
    detail: Optional[str] = None


class DeviceHealthResponse(BaseModel):
    """Connection health of one configured device"""
    name: str
    group: str
    host: str
    port: int
    slave_id: int
    device_type: str
    state: str
    connected: bool
    consecutive_failures: int
    last_success_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None


class DevicesHealthResponse(BaseModel):
    """Connection health of all configured devices"""
    ok: bool
    devices: List[DeviceHealthResponse]
