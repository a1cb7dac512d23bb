"""
Configuration for the smart device link.

Provides settings for the managed device, the liveness and event
polling intervals, LAN discovery and the discovery HTTP API.
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NodeSettings(BaseSettings):
    """Settings of the node that manages one device."""

    model_config = SettingsConfigDict(
        env_prefix="SMARTHOME_NODE_",
        env_file=".env",
        extra="ignore",
    )

    name: str = Field(default="smart device", description="Display name of the node")
    device: Optional[str] = Field(default="", description="Device host (IP or hostname)")
    device_type: Literal["plug", "bulb", "bulb-alt"] = Field(
        default="plug", description="Capability set of the device"
    )
    interval: int = Field(
        default=10000, gt=0, description="Liveness probe / reconnect interval (ms)"
    )
    event_interval: int = Field(
        default=10000, gt=0, description="Event polling interval (ms)"
    )

    @property
    def liveness_interval_seconds(self) -> float:
        """Liveness interval in seconds."""
        return self.interval / 1000.0

    @property
    def poll_interval_seconds(self) -> float:
        """Event polling interval in seconds."""
        return self.event_interval / 1000.0


class DiscoverySettings(BaseSettings):
    """LAN discovery configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SMARTHOME_DISCOVERY_",
        env_file=".env",
        extra="ignore",
    )

    timeout: float = Field(default=10.0, gt=0, description="Discovery window in seconds")


class ApiSettings(BaseSettings):
    """Discovery HTTP API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SMARTHOME_API_",
        env_file=".env",
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8503, description="Server port")


class SmartHomeSettings(BaseSettings):
    """Main configuration for the smart device link."""

    model_config = SettingsConfigDict(
        env_prefix="SMARTHOME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Smart Home Link")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Import path of the device client factory ("package.module:attribute")
    client_factory: Optional[str] = Field(
        default=None, description="Device client factory import path"
    )

    # Sub-settings
    node: NodeSettings = Field(default_factory=NodeSettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    api: ApiSettings = Field(default_factory=ApiSettings)


@lru_cache()
def get_settings() -> SmartHomeSettings:
    """
    Get cached settings.

    Uses LRU cache to avoid re-reading environment variables on every access.
    """
    return SmartHomeSettings()
