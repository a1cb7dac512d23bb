"""
LAN discovery of smart devices.

Discovery is a one-shot operation: listen for device announcements
during a fixed window, then stop. It shares no state with the nodes.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..devices.client import ClientFactory, DeviceHandle
from ..errors import DeviceConnectionError

logger = logging.getLogger(__name__)

DEFAULT_DISCOVERY_TIMEOUT = 10.0


@dataclass
class DiscoveredDevice:
    """A device that announced itself during discovery."""

    host: str
    model: Optional[str] = None
    discovered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "host": self.host,
            "model": self.model,
            "discovered_at": self.discovered_at.isoformat(),
        }


class DiscoveryService:
    """
    Finds devices of one category on the LAN.

    Each call creates its own client so concurrent scans do not share
    a discovery socket.
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
    ):
        """
        Initialize the discovery service.

        Args:
            client_factory: Creates device clients.
            timeout: Discovery window in seconds.
        """
        self.client_factory = client_factory
        self.timeout = timeout

    async def discover(
        self,
        device_type: str,
        timeout: Optional[float] = None,
    ) -> List[DiscoveredDevice]:
        """
        Listen for devices of one category.

        Args:
            device_type: Discovery category, e.g. ``plug`` or ``bulb``.
            timeout: Window in seconds, defaults to the service timeout.

        Returns:
            Devices found, in announcement order, one per host.
        """
        window = self.timeout if timeout is None else timeout
        client = self.client_factory()
        found: Dict[str, DiscoveredDevice] = {}

        def on_device(device: DeviceHandle) -> None:
            host = getattr(device, "host", None)
            if not host or host in found:
                return
            found[host] = DiscoveredDevice(host=host, model=getattr(device, "model", None))
            logger.debug(f"Discovered {device_type} at {host}")

        logger.info(f"Starting {device_type} discovery ({window}s window)")
        client.start_discovery(device_types=[device_type], on_device=on_device)
        try:
            await asyncio.sleep(window)
        finally:
            client.stop_discovery()

        logger.info(f"Discovery found {len(found)} {device_type} device(s)")
        return list(found.values())

    async def discover_hosts(
        self,
        device_type: str,
        timeout: Optional[float] = None,
    ) -> List[str]:
        """Host addresses of the devices found by ``discover``."""
        return [device.host for device in await self.discover(device_type, timeout)]

    async def resolve_model(self, host: str) -> str:
        """
        Look up a single host and return its model identifier.

        Raises:
            DeviceConnectionError: If the host cannot be resolved.
        """
        client = self.client_factory()
        try:
            device = await client.get_device(host)
        except Exception as e:
            raise DeviceConnectionError(
                f"Lookup of {host} failed: {e}", host=host, operation="lookup"
            ) from e
        return str(getattr(device, "model", "") or "")
