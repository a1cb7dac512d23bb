"""
Inbound command routing.

A command is a single payload. The first matching rule wins:

1. boolean-like        -> switch power, then emit a fresh snapshot
2. ``<param>:<int>``   -> set a light parameter, then emit a snapshot
3. ``getInfo``         -> emit a snapshot now
4. ``getMeterInfo``    -> emit a meter reading now
5. ``clearEvents``     -> disable all events
6. ``eraseStats``      -> erase meter statistics, emit the result
7. anything else       -> ``|`` separated list of events to enable

Rules 5 and 7 only touch the local filter and work while disconnected.
"""
import logging
import re
from typing import Any, Optional, Tuple

from ..connection.controller import ConnectionController
from ..devices.capabilities import DeviceCapabilities
from ..devices.session import DeviceSession
from ..devices.subscription import SubscriptionFilter
from ..errors import CommandError, DeviceConnectionError
from ..events.emitter import (
    STATUS_NOT_REACHABLE,
    EventEmitter,
    StatusLevel,
    StatusShape,
    StatusUpdate,
)
from ..polling.engine import PollingEngine

logger = logging.getLogger(__name__)

GET_INFO = "getInfo"
GET_METER_INFO = "getMeterInfo"
CLEAR_EVENTS = "clearEvents"
ERASE_STATS = "eraseStats"

_TRUE_WORDS = {"true", "on", "1"}
_FALSE_WORDS = {"false", "off", "0"}
_PARAMETER_PATTERN = re.compile(r"^\s*(?P<name>[A-Za-z_]+)\s*(?::\s*(?P<value>.*))?$")


def parse_power(payload: Any) -> Optional[bool]:
    """
    Interpret a boolean-like payload.

    Returns:
        True/False, or None if the payload is not boolean-like.
    """
    if isinstance(payload, bool):
        return payload
    if isinstance(payload, (int, float)) and payload in (0, 1):
        return bool(payload)
    if isinstance(payload, str):
        word = payload.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    return None


class CommandRouter:
    """
    Dispatches inbound commands to the device or the filter.

    Errors are reported through the status sink and logged; they never
    stop the node.
    """

    def __init__(
        self,
        controller: ConnectionController,
        poller: PollingEngine,
        subscriptions: SubscriptionFilter,
        capabilities: DeviceCapabilities,
        emitter: EventEmitter,
    ):
        self.controller = controller
        self.poller = poller
        self.subscriptions = subscriptions
        self.capabilities = capabilities
        self.emitter = emitter

        self.total_commands = 0
        self.rejected_commands = 0

    async def handle(self, payload: Any) -> bool:
        """
        Handle one inbound command.

        Args:
            payload: Command payload.

        Returns:
            True if the command was carried out.
        """
        self.total_commands += 1
        try:
            return await self._dispatch(payload)
        except CommandError as e:
            self.rejected_commands += 1
            logger.warning(f"Command {payload!r} rejected: {e.message}")
            if e.code == 'NOT_REACHABLE':
                self.emitter.report_status(STATUS_NOT_REACHABLE)
            else:
                self.emitter.report_status(
                    StatusUpdate(StatusLevel.RED, e.message, StatusShape.RING)
                )
            return False

    async def _dispatch(self, payload: Any) -> bool:
        power = parse_power(payload)
        if power is not None:
            session = self._require_session(payload)
            try:
                await session.set_power(power)
            except DeviceConnectionError as e:
                self.controller.handle_connection_error(e, session)
                return False
            return await self.poller.refresh_info(session) is not None

        if not isinstance(payload, str):
            raise CommandError("Unsupported command payload", command=payload)

        parameter = self._match_parameter(payload)
        if parameter is not None:
            key, value = parameter
            session = self._require_session(payload)
            try:
                await session.set_capability_param(key, value)
            except DeviceConnectionError as e:
                self.controller.handle_connection_error(e, session)
                return False
            return await self.poller.refresh_info(session) is not None

        command = payload.strip()

        if command == GET_INFO:
            session = self._require_session(payload)
            return await self.poller.refresh_info(session) is not None

        if command == GET_METER_INFO:
            self._require_metering(payload)
            session = self._require_session(payload)
            return await self.poller.refresh_meter(session) is not None

        if command == CLEAR_EVENTS:
            self.subscriptions.clear()
            return True

        if command == ERASE_STATS:
            self._require_metering(payload)
            session = self._require_session(payload)
            return await self._erase_stats(session)

        enabled = self.subscriptions.replace(self.subscriptions.parse(payload))
        if not enabled:
            logger.info(f"No known events in {payload!r}, all events disabled")
        return True

    def _match_parameter(self, payload: str) -> Optional[Tuple[str, int]]:
        """
        Match ``<param>:<int>`` for the device's parametrized commands.

        Raises:
            CommandError: If the parameter is known but its value is malformed.
        """
        match = _PARAMETER_PATTERN.match(payload)
        if match is None:
            return None
        key = self.capabilities.parameters.get(match.group("name"))
        if key is None:
            return None
        try:
            value = int((match.group("value") or "").strip())
        except ValueError:
            raise CommandError(
                f"Malformed value for {match.group('name')}",
                command=payload,
                code='MALFORMED_COMMAND',
            ) from None
        return key, value

    def _require_session(self, payload: Any) -> DeviceSession:
        session = self.controller.session
        if session is None or not self.controller.is_connected:
            raise CommandError(
                "Device not reachable", command=payload, code='NOT_REACHABLE'
            )
        return session

    def _require_metering(self, payload: Any) -> None:
        if not self.capabilities.has_metering:
            raise CommandError(
                f"Device type '{self.capabilities.device_type}' has no energy meter",
                command=payload,
                code='UNSUPPORTED_COMMAND',
            )

    async def _erase_stats(self, session: DeviceSession) -> bool:
        try:
            result = await session.erase_meter_stats()
        except DeviceConnectionError as e:
            self.controller.handle_connection_error(e, session)
            return False
        if session is not self.controller.session:
            logger.debug(f"Dropping erase result from stale session {session.session_id}")
            return False
        self.emitter.emit_result(result)
        return True
