"""
Device session wrapper.

A session owns the handle returned by one successful lookup. It is
never reused: a reconnect always opens a new session, and a discarded
session drops its push subscriptions and ignores late notifications.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID, uuid4

from ..errors import DeviceCallError, DeviceConnectionError
from .client import DeviceClient, DeviceHandle, Unsubscribe

logger = logging.getLogger(__name__)


class DeviceSession:
    """
    Live connection to one device.

    Every I/O method raises DeviceConnectionError (or DeviceCallError
    for state changing calls) when the underlying client fails.
    """

    def __init__(
        self,
        handle: DeviceHandle,
        host: str,
        session_id: Optional[UUID] = None,
    ):
        """
        Initialize the session.

        Args:
            handle: Device handle from the client lookup.
            host: Address the handle was resolved from.
            session_id: Optional session ID. Generated if not provided.
        """
        self.handle = handle
        self.host = host
        self.session_id = session_id or uuid4()
        self.opened_at = datetime.now(timezone.utc)

        self._unsubscribers: List[Unsubscribe] = []
        self._discarded = False

    @property
    def is_active(self) -> bool:
        """Check if the session has not been discarded."""
        return not self._discarded

    @property
    def model(self) -> Optional[str]:
        """Device model reported by the handle."""
        return getattr(self.handle, "model", None)

    async def probe(self) -> None:
        """Lightweight reachability check; the result is discarded."""
        try:
            await self.handle.get_info()
        except Exception as e:
            raise DeviceConnectionError(
                f"Liveness probe failed: {e}", host=self.host, operation="probe"
            ) from e

    async def fetch_snapshot(self) -> Dict[str, Any]:
        """Fetch the full device state."""
        try:
            return dict(await self.handle.get_sys_info())
        except Exception as e:
            raise DeviceConnectionError(
                f"Snapshot fetch failed: {e}", host=self.host, operation="snapshot"
            ) from e

    async def fetch_meter_snapshot(self) -> Dict[str, Any]:
        """Fetch real-time metering."""
        try:
            return dict(await self.handle.get_realtime())
        except Exception as e:
            raise DeviceConnectionError(
                f"Meter fetch failed: {e}", host=self.host, operation="meter"
            ) from e

    async def set_power(self, on: bool) -> None:
        """Switch the device on or off."""
        try:
            await self.handle.set_power_state(on)
        except Exception as e:
            raise DeviceCallError(
                f"Power change failed: {e}", host=self.host, operation="set_power"
            ) from e

    async def set_capability_param(self, name: str, value: int) -> None:
        """
        Set one light state parameter.

        Args:
            name: Light state key (e.g. ``brightness`` or ``color_temp``).
            value: New value.
        """
        try:
            await self.handle.set_light_state({name: value})
        except Exception as e:
            raise DeviceCallError(
                f"Setting {name} failed: {e}", host=self.host, operation=name
            ) from e

    async def erase_meter_stats(self) -> Dict[str, Any]:
        """Erase the device's accumulated meter statistics."""
        try:
            result = await self.handle.erase_stats()
        except Exception as e:
            raise DeviceCallError(
                f"Erasing stats failed: {e}", host=self.host, operation="erase_stats"
            ) from e
        return dict(result) if isinstance(result, dict) else {"result": result}

    def start_device_polling(self, interval_ms: int) -> None:
        """Ask the device to self-poll so it emits push notifications."""
        start_polling = getattr(self.handle, "start_polling", None)
        if start_polling is None:
            logger.debug(f"Device {self.host} does not support self-polling")
            return
        start_polling(interval_ms)

    def subscribe(self, category: str, handler: Callable[[], None]) -> None:
        """
        Register a handler for a device notification.

        The handler is only invoked while the session is active.
        """
        if self._discarded:
            return

        def guarded() -> None:
            if self._discarded:
                logger.debug(
                    f"Ignoring '{category}' from discarded session {self.session_id}"
                )
                return
            handler()

        self._unsubscribers.append(self.handle.on(category, guarded))

    def discard(self) -> None:
        """Drop the handle's subscriptions; the session becomes inert."""
        if self._discarded:
            return
        self._discarded = True

        for unsubscribe in self._unsubscribers:
            try:
                unsubscribe()
            except Exception as e:
                logger.debug(f"Unsubscribe failed for {self.host}: {e}")
        self._unsubscribers.clear()

        stop_polling = getattr(self.handle, "stop_polling", None)
        if stop_polling is not None:
            try:
                stop_polling()
            except Exception as e:
                logger.debug(f"Stopping device polling failed for {self.host}: {e}")

        logger.debug(f"Session {self.session_id} for {self.host} discarded")

    def __repr__(self) -> str:
        return (
            f"DeviceSession("
            f"id={self.session_id}, "
            f"host={self.host}, "
            f"active={self.is_active})"
        )


async def open_session(client: DeviceClient, host: str) -> DeviceSession:
    """
    Resolve a host into a new session.

    Raises:
        DeviceConnectionError: If the lookup fails.
    """
    try:
        handle = await client.get_device(host)
    except Exception as e:
        raise DeviceConnectionError(
            f"Lookup of {host} failed: {e}", host=host, operation="lookup"
        ) from e
    return DeviceSession(handle, host)
