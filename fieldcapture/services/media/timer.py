"""Elapsed-seconds counter shown while a video is being recorded."""

import asyncio
import contextlib
from collections.abc import Callable


def format_elapsed(seconds: int) -> str:
    """Format seconds as ``mm:ss``."""
    mins, secs = divmod(seconds, 60)
    return f"{mins:02d}:{secs:02d}"


class RecordingTimer:
    """Ticks once per ``interval`` seconds while running.

    Args:
        interval: Seconds between ticks.
        on_tick: Optional callback receiving the new elapsed count.
    """

    def __init__(
        self,
        interval: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
    ) -> None:
        self._interval = interval
        self._on_tick = on_tick
        self._task: asyncio.Task | None = None
        self.elapsed = 0

    @property
    def running(self) -> bool:
        return self._task is not None

    @property
    def formatted(self) -> str:
        return format_elapsed(self.elapsed)

    def start(self) -> None:
        """Start ticking from zero (restarts if already running)."""
        self.stop()
        self._task = asyncio.create_task(self._run())

    def stop(self) -> int:
        """Cancel the ticker synchronously and reset; returns the final count."""
        elapsed = self.elapsed
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
        self.elapsed = 0
        return elapsed

    async def _run(self) -> None:
        with contextlib.suppress(asyncio.CancelledError):
            while True:
                await asyncio.sleep(self._interval)
                self.elapsed += 1
                if self._on_tick is not None:
                    self._on_tick(self.elapsed)
