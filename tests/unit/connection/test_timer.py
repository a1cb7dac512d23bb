"""
Unit tests for RecurringTimer.
"""
import asyncio

import pytest
from unittest.mock import MagicMock

from smarthome_link.connection.timer import RecurringTimer


class TestRecurringTimer:
    """Test timer lifecycle."""

    @pytest.mark.asyncio
    async def test_fires_repeatedly(self):
        callback = MagicMock()
        timer = RecurringTimer("test", 0.01, callback)

        timer.start()
        await asyncio.sleep(0.055)
        timer.stop()

        assert callback.call_count >= 2
        assert timer.ticks == callback.call_count

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        timer = RecurringTimer("test", 10, MagicMock())
        timer.start()

        timer.stop()
        timer.stop()

        assert not timer.is_running

    @pytest.mark.asyncio
    async def test_restart_replaces_loop(self):
        """Starting twice leaves a single live loop."""
        timer = RecurringTimer("test", 10, MagicMock())
        timer.start()
        first = timer._task

        timer.start()
        await asyncio.sleep(0)

        assert first.cancelled()
        assert timer.is_running
        timer.stop()

    @pytest.mark.asyncio
    async def test_callback_error_does_not_kill_timer(self):
        callback = MagicMock(side_effect=RuntimeError("boom"))
        timer = RecurringTimer("test", 0.01, callback)

        timer.start()
        await asyncio.sleep(0.035)

        assert timer.is_running
        assert callback.call_count >= 2
        timer.stop()

    @pytest.mark.asyncio
    async def test_stop_from_callback(self):
        """A tick may stop its own timer."""
        timer = RecurringTimer("test", 0.01, lambda: timer.stop())

        timer.start()
        await asyncio.sleep(0.05)

        assert timer.ticks == 1
        assert not timer.is_running
