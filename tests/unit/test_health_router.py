"""
Unit tests for the health API.

Run with: pytest tests/unit/test_health_router.py -v
"""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeRegisterClient
from tapgen_collector.app import create_app
from tapgen_collector.runtime import AcquisitionRuntime


@pytest.fixture
def runtime(test_settings, site1_topology, flow_catalog):
    return AcquisitionRuntime(
        test_settings,
        site1_topology,
        catalog=flow_catalog,
        sinks=[],
        client_factory=FakeRegisterClient,
    )


@pytest.fixture
def client(runtime):
    app = create_app(runtime=runtime)
    with TestClient(app) as test_client:
        yield test_client


def test_healthz(client):
    response = client.get("/api/healthz")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["groups"] == 1
    assert body["devices"] == 2
    assert body["devices_connected"] == 0
    assert body["scheduler_running"] is False
    assert body["ticks_completed"] == 0
    assert body["database_ok"] is None


def test_devices_health_reports_each_device(client, runtime):
    runtime.health_manager.report_outcome("deviceA", True)
    runtime.health_manager.report_outcome("deviceB", False)

    response = client.get("/api/devices/health")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is False
    devices = {device["name"]: device for device in body["devices"]}
    assert devices["deviceA"]["state"] == "connected"
    assert devices["deviceA"]["group"] == "site1"
    assert devices["deviceB"]["state"] == "disconnected"
    assert devices["deviceB"]["consecutive_failures"] == 1
    assert devices["deviceB"]["last_failure_at"] is not None


def test_single_device_health(client):
    response = client.get("/api/devices/deviceA/health")

    assert response.status_code == 200
    assert response.json()["state"] == "unknown"


def test_unknown_device_is_404(client):
    response = client.get("/api/devices/ghost/health")

    assert response.status_code == 404
    assert "ghost" in response.json()["detail"]


def test_shutdown_closes_clients(runtime):
    app = create_app(runtime=runtime)
    with TestClient(app):
        pass

    for name in runtime.health_manager.device_names():
        assert runtime.health_manager.get_client(name).close_calls == 1
