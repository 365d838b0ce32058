"""Health check endpoints."""

from fastapi import APIRouter, HTTPException, Request

from tapgen_collector.db.connection import check_db_health
from tapgen_collector.runtime import AcquisitionRuntime
from tapgen_collector.scheduler.engine import get_scheduler
from tapgen_collector.schemas.api_models import (
    DeviceHealthResponse,
    DevicesHealthResponse,
    HealthResponse,
)
from tapgen_collector.utils.exceptions import AppError

router = APIRouter()


def _get_runtime(request: Request) -> AcquisitionRuntime:
    return request.app.state.runtime


def _device_health(runtime: AcquisitionRuntime, group: str, endpoint) -> DeviceHealthResponse:
    health = runtime.health_manager.get_health(endpoint.name)
    return DeviceHealthResponse(
        name=endpoint.name,
        group=group,
        host=endpoint.host,
        port=endpoint.port,
        slave_id=endpoint.slave_id,
        device_type=endpoint.device_type,
        state=health.state.value,
        connected=health.connected,
        consecutive_failures=health.consecutive_failures,
        last_success_at=health.last_success_time,
        last_failure_at=health.last_failure_time,
    )


@router.get("/healthz", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Liveness check.

    Reports configured counts and scheduler state without touching any device.
    `database_ok` is null when storage is disabled.
    """
    runtime = _get_runtime(request)
    scheduler = get_scheduler()
    devices_connected = sum(
        1 for name in runtime.health_manager.device_names()
        if runtime.health_manager.is_connected(name)
    )
    return HealthResponse(
        ok=True,
        groups=len(runtime.topology.groups),
        devices=runtime.device_count(),
        devices_connected=devices_connected,
        scheduler_running=scheduler is not None and scheduler.running,
        ticks_completed=runtime.orchestrator.tick_count,
        database_ok=await check_db_health() if runtime.settings.storage_enabled else None,
        detail="API is healthy"
    )


@router.get("/devices/health", response_model=DevicesHealthResponse)
async def devices_health(request: Request):
    """
    Connection state of every configured device.

    `ok` is true only when every device is currently connected.
    """
    runtime = _get_runtime(request)
    devices = [
        _device_health(runtime, group, endpoint)
        for group, endpoint in runtime.iter_endpoints()
    ]
    return DevicesHealthResponse(
        ok=all(device.connected for device in devices),
        devices=devices
    )


@router.get("/devices/{device_name}/health", response_model=DeviceHealthResponse)
async def device_health(device_name: str, request: Request):
    """Connection state of one device."""
    runtime = _get_runtime(request)
    try:
        group, endpoint = runtime.get_endpoint(device_name)
    except AppError as e:
        raise HTTPException(status_code=e.http_status_code, detail=e.message)
    return _device_health(runtime, group, endpoint)
