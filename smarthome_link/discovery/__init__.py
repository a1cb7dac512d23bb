"""
Discovery module.

One-shot LAN discovery and host to model resolution.
"""
from .discovery_service import (
    DEFAULT_DISCOVERY_TIMEOUT,
    DiscoveredDevice,
    DiscoveryService,
)

__all__ = [
    "DEFAULT_DISCOVERY_TIMEOUT",
    "DiscoveredDevice",
    "DiscoveryService",
]
