"""
Unit tests for settings.
"""
import pytest
from pydantic import ValidationError

from smarthome_link.config import NodeSettings, SmartHomeSettings


class TestNodeSettings:
    """Test node settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SMARTHOME_NODE_DEVICE", raising=False)

        settings = NodeSettings(_env_file=None)

        assert settings.device == ""
        assert settings.device_type == "plug"
        assert settings.liveness_interval_seconds == 10.0

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("SMARTHOME_NODE_DEVICE", "192.168.1.20")
        monkeypatch.setenv("SMARTHOME_NODE_DEVICE_TYPE", "bulb")
        monkeypatch.setenv("SMARTHOME_NODE_EVENT_INTERVAL", "2500")

        settings = NodeSettings(_env_file=None)

        assert settings.device == "192.168.1.20"
        assert settings.device_type == "bulb"
        assert settings.poll_interval_seconds == 2.5

    def test_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            NodeSettings(interval=0, _env_file=None)

    def test_unknown_device_type_rejected(self):
        with pytest.raises(ValidationError):
            NodeSettings(device_type="kettle", _env_file=None)


class TestSmartHomeSettings:
    """Test top level settings."""

    def test_sections(self, monkeypatch):
        monkeypatch.setenv("SMARTHOME_CLIENT_FACTORY", "mylib.lan:Client")
        monkeypatch.setenv("SMARTHOME_DISCOVERY_TIMEOUT", "3")

        settings = SmartHomeSettings(_env_file=None)

        assert settings.client_factory == "mylib.lan:Client"
        assert settings.discovery.timeout == 3.0
        assert settings.api.port == 8503
