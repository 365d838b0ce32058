"""
Unit tests for settings and topology loading.

Run with: pytest tests/unit/test_config.py -v
"""

import json

import pytest
from pydantic import ValidationError

from tapgen_collector.config import Settings, load_topology
from tapgen_collector.schemas.topology import DeviceEndpoint, TopologyConfig
from tapgen_collector.utils.exceptions import ConfigurationError


def test_settings_defaults(monkeypatch):
    for name in ("POLL_INTERVAL_MS", "MODBUS_RECONNECT_INTERVAL_MS", "MODBUS_RETRIES"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)

    assert settings.poll_interval_ms == 10000
    assert settings.reconnect_interval_ms == 5000
    assert settings.retries == 2
    assert settings.connect_timeout_s == 3.0
    assert settings.database_url.startswith("postgresql+asyncpg://")


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("POLL_INTERVAL_MS", "2500")
    monkeypatch.setenv("SCHEDULER_ENABLED", "false")
    settings = Settings(_env_file=None)

    assert settings.poll_interval_ms == 2500
    assert settings.scheduler_enabled is False


def test_settings_reject_non_positive_interval():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, poll_interval_ms=0)


def test_load_topology(tmp_path):
    path = tmp_path / "groups.json"
    path.write_text(json.dumps({
        "groups": [
            {
                "name": "site1",
                "devices": [
                    {"name": "k24_1", "host": "10.0.0.1", "slaveId": 4, "deviceTypeCode": "k24"},
                    {"name": "ac_1", "host": "10.0.0.2", "port": 1502, "device_type": "acpower"},
                ],
            }
        ]
    }), encoding="utf-8")

    topology = load_topology(path)

    devices = dict((endpoint.name, endpoint) for _, endpoint in topology.iter_devices())
    assert devices["k24_1"].slave_id == 4
    assert devices["k24_1"].device_type == "k24"
    assert devices["k24_1"].port == 502
    assert devices["ac_1"].port == 1502
    assert devices["ac_1"].slave_id == 1


def test_missing_topology_file_is_empty(tmp_path):
    topology = load_topology(tmp_path / "nope.json")
    assert topology.groups == []


def test_invalid_json_is_configuration_error(tmp_path):
    path = tmp_path / "groups.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_topology(path)


def test_duplicate_device_names_rejected(tmp_path):
    path = tmp_path / "groups.json"
    device = {"name": "dup", "host": "10.0.0.1", "device_type": "k24"}
    path.write_text(json.dumps({
        "groups": [{"name": "a", "devices": [device]}, {"name": "b", "devices": [device]}]
    }), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_topology(path)


def test_duplicate_group_names_rejected():
    with pytest.raises(ValidationError):
        TopologyConfig.model_validate({"groups": [{"name": "a"}, {"name": "a"}]})


def test_endpoint_rejects_bad_port():
    with pytest.raises(ValidationError):
        DeviceEndpoint(name="x", host="h", port=0, device_type="k24")


def test_shipped_topology_is_valid():
    """The example topology under config/ validates against the catalog."""
    from pathlib import Path
    from tapgen_collector.modbus.catalog import DEFAULT_CATALOG

    path = Path(__file__).resolve().parents[2] / "config" / "device_groups.json"
    topology = load_topology(path)
    assert topology.groups
    for _, endpoint in topology.iter_devices():
        assert endpoint.device_type in DEFAULT_CATALOG
