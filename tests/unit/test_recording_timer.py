"""Tests for the recording timer and its mm:ss formatting."""

import asyncio

import pytest

from fieldcapture.services.media.timer import RecordingTimer, format_elapsed


class TestFormatElapsed:
    """Verify mm:ss rendering."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "00:00"), (7, "00:07"), (65, "01:05"), (600, "10:00")],
    )
    def test_format(self, seconds, expected):
        """Minutes and seconds are zero-padded."""
        assert format_elapsed(seconds) == expected


class TestRecordingTimer:
    """Verify tick/stop/reset behaviour."""

    async def test_ticks_while_running(self):
        """Each interval increments the count and fires the callback."""
        ticks = []
        timer = RecordingTimer(interval=0.01, on_tick=ticks.append)
        timer.start()
        await asyncio.sleep(0.06)
        assert timer.running
        assert timer.elapsed >= 2
        assert ticks[:2] == [1, 2]
        timer.stop()

    async def test_stop_returns_count_and_resets(self):
        """stop() reports the final count and zeroes the display."""
        timer = RecordingTimer(interval=0.01)
        timer.start()
        await asyncio.sleep(0.05)
        final = timer.stop()
        assert final >= 1
        assert timer.elapsed == 0
        assert timer.formatted == "00:00"
        assert not timer.running

    async def test_no_ticks_after_stop(self):
        """A stopped timer never ticks again."""
        ticks = []
        timer = RecordingTimer(interval=0.01, on_tick=ticks.append)
        timer.start()
        timer.stop()
        await asyncio.sleep(0.04)
        assert ticks == []
        assert timer.elapsed == 0

    async def test_restart_counts_from_zero(self):
        """start() on a running timer restarts the count."""
        timer = RecordingTimer(interval=0.01)
        timer.start()
        await asyncio.sleep(0.04)
        timer.start()
        assert timer.elapsed == 0
        timer.stop()

    def test_stop_when_never_started(self):
        """stop() is safe on an idle timer."""
        assert RecordingTimer().stop() == 0
