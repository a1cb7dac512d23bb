"""
Event polling engine.

While the device is connected, periodically fetches the snapshots the
consumer subscribed to and hands them to the emitter.
"""
import logging
from typing import Any, Dict, Optional

from ..connection.controller import ConnectionController, ConnectionState
from ..connection.timer import RecurringTimer
from ..devices.capabilities import INFO_EVENTS, METER_EVENTS, DeviceCapabilities
from ..devices.session import DeviceSession
from ..devices.subscription import SubscriptionFilter
from ..errors import DeviceConnectionError
from ..events.emitter import EventEmitter

logger = logging.getLogger(__name__)


class PollingEngine:
    """
    Periodic snapshot polling for one device.

    The poll timer only runs while connected. Fetch failures are
    reported to the controller's failure handler, and results that
    arrive for a discarded session are dropped.
    """

    def __init__(
        self,
        controller: ConnectionController,
        subscriptions: SubscriptionFilter,
        capabilities: DeviceCapabilities,
        emitter: EventEmitter,
        interval: float,
    ):
        """
        Initialize the polling engine.

        Args:
            controller: Connection controller of the node.
            subscriptions: Subscription filter of the node.
            capabilities: Device capability descriptor.
            emitter: Event emitter of the node.
            interval: Seconds between poll ticks.
        """
        self.controller = controller
        self.subscriptions = subscriptions
        self.capabilities = capabilities
        self.emitter = emitter
        self.timer = RecurringTimer("poll", interval, self.tick)

        self.total_polls = 0
        self.failed_polls = 0

    @property
    def is_running(self) -> bool:
        """Check if the poll timer is alive."""
        return self.timer.is_running

    def start(self) -> None:
        """Start (or restart) the poll timer."""
        self.timer.start()
        logger.info(
            f"Scheduled event polling for {self.controller.address} "
            f"(interval={self.timer.interval}s)"
        )

    def stop(self) -> None:
        """Stop the poll timer."""
        if self.timer.is_running:
            logger.debug(f"Cancelled event polling for {self.controller.address}")
        self.timer.stop()

    def tick(self) -> None:
        """Fetch every subscribed snapshot once."""
        session = self.controller.session
        if session is None or self.controller.state != ConnectionState.CONNECTED:
            logger.debug("No active session, stopping event polling")
            self.stop()
            return

        if self.subscriptions.is_enabled(INFO_EVENTS):
            self.total_polls += 1
            self.controller.spawn(
                self.refresh_info(session), name=f"poll-info-{session.host}"
            )
        if self.capabilities.has_metering and self.subscriptions.is_enabled(METER_EVENTS):
            self.total_polls += 1
            self.controller.spawn(
                self.refresh_meter(session), name=f"poll-meter-{session.host}"
            )

    async def refresh_info(
        self,
        session: Optional[DeviceSession] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch and emit a device snapshot.

        Args:
            session: Session to use, defaults to the current one.

        Returns:
            The emitted payload, or None if nothing was emitted.
        """
        session = session or self.controller.session
        if session is None:
            return None

        try:
            snapshot = await session.fetch_snapshot()
        except DeviceConnectionError as e:
            self.failed_polls += 1
            self.controller.handle_connection_error(e, session)
            return None

        if session is not self.controller.session:
            logger.debug(f"Dropping snapshot from stale session {session.session_id}")
            return None

        return self.emitter.emit_snapshot(snapshot)

    async def refresh_meter(
        self,
        session: Optional[DeviceSession] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch and emit a real-time meter reading.

        Args:
            session: Session to use, defaults to the current one.

        Returns:
            The emitted payload, or None if nothing was emitted.
        """
        session = session or self.controller.session
        if session is None:
            return None

        try:
            reading = await session.fetch_meter_snapshot()
        except DeviceConnectionError as e:
            self.failed_polls += 1
            self.controller.handle_connection_error(e, session)
            return None

        if session is not self.controller.session:
            logger.debug(f"Dropping meter reading from stale session {session.session_id}")
            return None

        return self.emitter.emit_meter_snapshot(reading)

    def get_polling_stats(self) -> Dict[str, Any]:
        """Get polling statistics."""
        return {
            "running": self.timer.is_running,
            "interval": self.timer.interval,
            "ticks": self.timer.ticks,
            "total_polls": self.total_polls,
            "failed_polls": self.failed_polls,
        }
