"""Single outstanding inactivity timer used for auto-pause."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional


class AutoPauseScheduler:
    """Run ``on_fire`` once after ``delay_sec`` unless re-armed or cancelled.

    Each arm/cancel bumps a generation counter; a wake-up whose generation is
    no longer current is dropped, so a timer left over from an earlier
    session phase can never fire into the current one.
    """

    def __init__(self, delay_sec: float, on_fire: Callable[[], None]) -> None:
        self._delay_sec = delay_sec
        self._on_fire = on_fire
        self._task: Optional[asyncio.Task[None]] = None
        self._generation = 0

    @property
    def delay_sec(self) -> float:
        return self._delay_sec

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self) -> None:
        self.cancel()
        generation = self._generation
        self._task = asyncio.get_running_loop().create_task(self._fire_later(generation))

    def cancel(self) -> None:
        self._generation += 1
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
            self._task = None

    async def _fire_later(self, generation: int) -> None:
        await asyncio.sleep(self._delay_sec)
        if generation != self._generation:
            return
        self._task = None
        self._on_fire()
