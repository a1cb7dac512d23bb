"""
Smart device node.

Wires the subscription filter, event emitter, connection controller,
polling engine and command router for one configured device.
"""
import logging
from typing import Any, Dict

from .commands.router import CommandRouter
from .config import NodeSettings
from .connection.controller import ConnectionController, ConnectionState
from .devices.capabilities import get_capabilities
from .devices.client import DeviceClient
from .devices.subscription import SubscriptionFilter
from .events.emitter import EventEmitter, EventSink, StatusSink
from .polling.engine import PollingEngine

logger = logging.getLogger(__name__)


class SmartDeviceNode:
    """
    One node managing one smart plug or bulb.

    The host feeds commands into ``handle_input`` and receives events
    and status updates through the two sinks. ``close`` is the
    shutdown hook.
    """

    def __init__(
        self,
        settings: NodeSettings,
        client: DeviceClient,
        status_sink: StatusSink,
        event_sink: EventSink,
    ):
        """
        Initialize the node.

        Args:
            settings: Node settings.
            client: Device client used for lookups.
            status_sink: Receives status updates.
            event_sink: Receives outbound events.

        Raises:
            ConfigurationError: If the device type is unknown.
        """
        self.settings = settings
        self.name = settings.name
        self.capabilities = get_capabilities(settings.device_type)

        self.subscriptions = SubscriptionFilter(self.capabilities.event_tags)
        self.emitter = EventEmitter(
            self.capabilities,
            self.subscriptions,
            event_sink=event_sink,
            status_sink=status_sink,
        )
        self.controller = ConnectionController(
            address=settings.device,
            client=client,
            capabilities=self.capabilities,
            emitter=self.emitter,
            liveness_interval=settings.liveness_interval_seconds,
        )
        self.poller = PollingEngine(
            self.controller,
            self.subscriptions,
            self.capabilities,
            self.emitter,
            interval=settings.poll_interval_seconds,
        )
        self.router = CommandRouter(
            self.controller,
            self.poller,
            self.subscriptions,
            self.capabilities,
            self.emitter,
        )

        self.controller.set_on_connected(lambda _session: self.poller.start())
        self.controller.set_on_disconnected(self.poller.stop)

    @property
    def state(self) -> ConnectionState:
        """Connection state of the device."""
        return self.controller.state

    def start(self) -> bool:
        """
        Start connecting. Must be called from a running event loop.

        Returns:
            False if the node has no device address.
        """
        logger.info(
            f"Starting node '{self.name}' "
            f"({self.capabilities.device_type} at {self.settings.device or '<unset>'})"
        )
        return self.controller.start()

    async def handle_input(self, payload: Any) -> bool:
        """Handle one inbound command."""
        if self.controller.is_closed:
            logger.warning(f"Node '{self.name}' closed, ignoring {payload!r}")
            return False
        return await self.router.handle(payload)

    async def close(self) -> None:
        """Stop both timers and cancel in-flight I/O. Idempotent."""
        self.poller.stop()
        await self.controller.close()

    def get_stats(self) -> Dict[str, Any]:
        """Get node statistics."""
        last_status = self.emitter.last_status
        return {
            "name": self.name,
            "device_type": self.capabilities.device_type,
            "connection": self.controller.get_stats(),
            "polling": self.poller.get_polling_stats(),
            "enabled_events": sorted(self.subscriptions.enabled),
            "last_power": self.subscriptions.last_power,
            "last_status": last_status.to_dict() if last_status else None,
            "events_sent": self.emitter.events_sent,
            "events_suppressed": self.emitter.events_suppressed,
            "total_commands": self.router.total_commands,
            "rejected_commands": self.router.rejected_commands,
        }

    def __repr__(self) -> str:
        session = self.controller.session
        return (
            f"SmartDeviceNode("
            f"name={self.name}, "
            f"state={self.state.value}, "
            f"session={session.session_id if session else None})"
        )
