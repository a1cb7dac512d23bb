"""
FastAPI dependencies for the discovery API.

Provides the discovery service via dependency injection.
"""
from functools import lru_cache

from ..config import get_settings
from ..devices.client import load_client_factory
from ..discovery.discovery_service import DiscoveryService


@lru_cache()
def get_discovery_service() -> DiscoveryService:
    """Get discovery service instance built from settings."""
    settings = get_settings()
    return DiscoveryService(
        client_factory=load_client_factory(settings.client_factory),
        timeout=settings.discovery.timeout,
    )
