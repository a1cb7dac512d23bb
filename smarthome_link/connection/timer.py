"""
Recurring timer on the asyncio loop.

Fires a synchronous callback every interval. The callback is expected
to spawn its own I/O tasks, so a slow tick never delays the next one.
"""
import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RecurringTimer:
    """
    At most one live loop per timer.

    ``start`` on a running timer cancels the old loop first; ``stop``
    may be called any number of times.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], None],
    ):
        """
        Initialize the timer.

        Args:
            name: Name used for the task and in logs.
            interval: Seconds between ticks.
            callback: Called on every tick.
        """
        self.name = name
        self.interval = interval
        self._callback = callback
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        """Check if the timer loop is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the timer, replacing a running loop."""
        self.stop()
        self._task = asyncio.get_running_loop().create_task(
            self._run(),
            name=f"timer-{self.name}",
        )
        logger.debug(f"Timer {self.name} started (interval={self.interval}s)")

    def stop(self) -> None:
        """Cancel the timer loop."""
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            logger.debug(f"Timer {self.name} stopped")

    async def _run(self) -> None:
        """Timer loop."""
        while True:
            await asyncio.sleep(self.interval)
            self.ticks += 1
            try:
                self._callback()
            except Exception as e:
                logger.exception(f"Unexpected error in timer {self.name}: {e}")
