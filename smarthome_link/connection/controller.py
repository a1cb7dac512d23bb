"""
Connection controller for a single smart device.

Owns the connection state machine, the device session and the
liveness timer. The liveness timer runs from start until close: while
connected it probes the device, while disconnected it reconnects.
"""
import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from functools import partial
from typing import Any, Callable, Coroutine, Dict, Optional, Set

from ..devices.capabilities import DeviceCapabilities, PushBinding
from ..devices.client import DeviceClient
from ..devices.session import DeviceSession, open_session
from ..errors import ConfigurationError, DeviceConnectionError
from ..events.emitter import (
    STATUS_CONNECTED,
    STATUS_INITIALIZING,
    STATUS_NOT_CONFIGURED,
    STATUS_NOT_REACHABLE,
    EventEmitter,
)
from .timer import RecurringTimer

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Connection state enumeration."""
    UNCONFIGURED = "unconfigured"
    INITIALIZING = "initializing"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class ConnectionController:
    """
    Manages the connection lifecycle of one device.

    Responsibilities:
    - Open a fresh session on every connection attempt
    - Probe the device while connected
    - Reconnect from the liveness timer while disconnected
    - Funnel every I/O failure into a single failure handler
    - Track spawned I/O tasks so teardown leaves nothing behind
    """

    def __init__(
        self,
        address: Optional[str],
        client: DeviceClient,
        capabilities: DeviceCapabilities,
        emitter: EventEmitter,
        liveness_interval: float,
    ):
        """
        Initialize the controller.

        Args:
            address: Device host. Empty or None leaves the node unconfigured.
            client: Device client used for lookups.
            capabilities: Device capability descriptor.
            emitter: Event emitter of the node.
            liveness_interval: Seconds between liveness ticks.
        """
        self.address = (address or "").strip()
        self.client = client
        self.capabilities = capabilities
        self.emitter = emitter

        self.liveness_timer = RecurringTimer(
            "liveness", liveness_interval, self.liveness_tick
        )

        # State
        self._state = ConnectionState.INITIALIZING
        self._session: Optional[DeviceSession] = None
        self._connect_attempt = 0
        self._closed = False
        self._tasks: Set[asyncio.Task] = set()

        # Callbacks
        self._on_connected: Optional[Callable[[DeviceSession], None]] = None
        self._on_disconnected: Optional[Callable[[], None]] = None

        # Statistics
        self.total_connects = 0
        self.total_failures = 0
        self.connected_at: Optional[datetime] = None

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    def _set_state(self, value: ConnectionState) -> None:
        if self._state != value:
            logger.debug(
                f"Device {self.address or '<unset>'} state: "
                f"{self._state.value} -> {value.value}"
            )
            self._state = value

    @property
    def session(self) -> Optional[DeviceSession]:
        """Current session, None unless connected."""
        return self._session

    @property
    def is_connected(self) -> bool:
        """Check if the device is connected."""
        return self._state == ConnectionState.CONNECTED and self._session is not None

    @property
    def is_closed(self) -> bool:
        """Check if the controller has been torn down."""
        return self._closed

    def set_on_connected(self, callback: Callable[[DeviceSession], None]) -> None:
        """Set callback for the connected transition."""
        self._on_connected = callback

    def set_on_disconnected(self, callback: Callable[[], None]) -> None:
        """Set callback for transitions out of connected and teardown."""
        self._on_disconnected = callback

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """
        Start the controller.

        Returns:
            False if the node is unconfigured, True otherwise.
        """
        if self._closed:
            logger.warning("Controller already closed, not starting")
            return False

        if not self.address:
            error = ConfigurationError("No device address configured", field="device")
            logger.error(f"{error.message}, node stays idle")
            self._set_state(ConnectionState.UNCONFIGURED)
            self.emitter.report_status(STATUS_NOT_CONFIGURED)
            return False

        if self.liveness_timer.is_running:
            return True

        logger.info(f"Starting connection to {self.address}")
        self.emitter.report_status(STATUS_INITIALIZING)
        self._begin_connect()
        self.liveness_timer.start()
        return True

    async def close(self) -> None:
        """Cancel both timers and all in-flight I/O. Idempotent."""
        if self._closed:
            return
        self._closed = True

        self.liveness_timer.stop()

        session = self._session
        self._session = None
        if session is not None:
            session.discard()
        if self._state != ConnectionState.UNCONFIGURED:
            self._set_state(ConnectionState.DISCONNECTED)

        if self._on_disconnected:
            self._on_disconnected()

        current = asyncio.current_task()
        pending = [task for task in self._tasks if task is not current]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        logger.info(f"Connection controller for {self.address or '<unset>'} closed")

    # ------------------------------------------------------------------
    # Task tracking
    # ------------------------------------------------------------------

    def spawn(
        self,
        coro: Coroutine[Any, Any, Any],
        name: Optional[str] = None,
    ) -> Optional[asyncio.Task]:
        """
        Run a coroutine as a tracked task.

        Returns:
            The task, or None if the controller is closed.
        """
        if self._closed:
            coro.close()
            return None
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Unhandled error in task {task.get_name()}: {error!r}")

    async def drain(self) -> None:
        """Wait until every spawned task has finished."""
        current = asyncio.current_task()
        while True:
            pending = [task for task in self._tasks if task is not current]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    @property
    def pending_tasks(self) -> int:
        """Number of in-flight tasks."""
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Connecting
    # ------------------------------------------------------------------

    def _begin_connect(self) -> None:
        """Enter CONNECTING and spawn a lookup."""
        self._connect_attempt += 1
        self._set_state(ConnectionState.CONNECTING)
        self.spawn(
            self._connect(self._connect_attempt),
            name=f"connect-{self.address}-{self._connect_attempt}",
        )

    async def _connect(self, attempt: int) -> None:
        """
        Look up the device and open a session.

        Args:
            attempt: Attempt number; a stale attempt never changes state.
        """
        try:
            session = await open_session(self.client, self.address)
        except DeviceConnectionError as e:
            if self._closed or attempt != self._connect_attempt:
                return
            self.handle_connection_error(e)
            return

        if self._closed or attempt != self._connect_attempt:
            logger.debug(f"Dropping session from stale connect attempt {attempt}")
            session.discard()
            return

        self._session = session
        self._set_state(ConnectionState.CONNECTED)
        self.total_connects += 1
        self.connected_at = datetime.now(timezone.utc)

        try:
            self._register_push_handlers(session)
            if self.capabilities.device_polling:
                session.start_device_polling(int(self.liveness_timer.interval * 1000))

            if self._on_connected:
                self._on_connected(session)
        except Exception as e:
            self.handle_connection_error(e, session)
            return

        self.emitter.report_status(STATUS_CONNECTED)
        logger.info(
            f"Connected to {self.address} "
            f"(model={session.model}, session={session.session_id})"
        )

    def _register_push_handlers(self, session: DeviceSession) -> None:
        for binding in self.capabilities.push_bindings:
            session.subscribe(
                binding.device_event,
                partial(self._on_push, session, binding),
            )

    def _on_push(self, session: DeviceSession, binding: PushBinding) -> None:
        if session is not self._session:
            return
        self.emitter.emit_push(binding)

    # ------------------------------------------------------------------
    # Liveness
    # ------------------------------------------------------------------

    def liveness_tick(self) -> None:
        """Probe while connected, reconnect while disconnected."""
        if self._closed:
            return

        if self._state == ConnectionState.CONNECTED and self._session is not None:
            session = self._session
            self.spawn(self._probe(session), name=f"probe-{self.address}")
        elif self._state == ConnectionState.DISCONNECTED:
            logger.debug(f"Reconnecting to {self.address}")
            self._begin_connect()
        elif self._state == ConnectionState.CONNECTING:
            logger.debug(f"Lookup of {self.address} still in flight, skipping tick")

    async def _probe(self, session: DeviceSession) -> None:
        try:
            await session.probe()
        except DeviceConnectionError as e:
            self.handle_connection_error(e, session)

    # ------------------------------------------------------------------
    # Failure handling
    # ------------------------------------------------------------------

    def handle_connection_error(
        self,
        error: Optional[Exception] = None,
        session: Optional[DeviceSession] = None,
    ) -> bool:
        """
        Demote the connection after an I/O failure.

        Failures reported against a session that is no longer current,
        or while not connected or connecting, are ignored.

        Args:
            error: The failure, logged if given.
            session: Session the failing call used.

        Returns:
            True if a transition to DISCONNECTED happened.
        """
        if session is not None and session is not self._session:
            logger.debug(f"Ignoring failure from stale session {session.session_id}")
            return False

        if self._state not in (ConnectionState.CONNECTED, ConnectionState.CONNECTING):
            logger.debug(f"Ignoring failure in state {self._state.value}: {error}")
            return False

        if error is not None:
            logger.error(f"Device {self.address} not reachable: {error}")

        self.emitter.report_status(STATUS_NOT_REACHABLE)

        current = self._session
        self._session = None
        if current is not None:
            current.discard()

        self._set_state(ConnectionState.DISCONNECTED)
        self.total_failures += 1
        self.connected_at = None

        if self._on_disconnected:
            self._on_disconnected()

        return True

    def get_stats(self) -> Dict[str, Any]:
        """Get controller statistics."""
        session = self._session
        return {
            "address": self.address,
            "state": self._state.value,
            "session_id": str(session.session_id) if session else None,
            "model": session.model if session else None,
            "connected_at": (
                self.connected_at.isoformat() if self.connected_at else None
            ),
            "total_connects": self.total_connects,
            "total_failures": self.total_failures,
            "pending_tasks": len(self._tasks),
            "liveness_running": self.liveness_timer.is_running,
        }
