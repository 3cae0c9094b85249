"""Step sources feeding cumulative step counts to the workout engine."""

from __future__ import annotations

import asyncio
import contextlib
import math
import random
from typing import Awaitable, Callable, Optional, Protocol

from loguru import logger

StepCallback = Callable[[int], Awaitable[None] | None]


class StepSource(Protocol):
    """Anything that reports a cumulative step count since it was started."""

    async def start(self, callback: StepCallback) -> None: ...

    async def stop(self) -> None: ...


class StepBaseline:
    """Turn a raw hardware counter (steps since boot) into steps since start."""

    def __init__(self) -> None:
        self._initial: int | None = None

    def reset(self) -> None:
        self._initial = None

    def steps_since_start(self, raw_total: int) -> int:
        if self._initial is None or raw_total < self._initial:
            self._initial = raw_total
        return raw_total - self._initial


def _dispatch(callback: StepCallback | None, count: int) -> None:
    if callback is None:
        return
    maybe_coro = callback(count)
    if asyncio.iscoroutine(maybe_coro):
        asyncio.create_task(maybe_coro)


class ManualStepSource:
    """Push-driven source: the caller reports steps explicitly."""

    def __init__(self) -> None:
        self._callback: StepCallback | None = None
        self._count = 0

    @property
    def is_running(self) -> bool:
        return self._callback is not None

    @property
    def count(self) -> int:
        return self._count

    async def start(self, callback: StepCallback) -> None:
        self._callback = callback
        self._count = 0

    async def stop(self) -> None:
        self._callback = None

    def step(self, n: int = 1) -> None:
        if n <= 0 or self._callback is None:
            return
        self._count += n
        _dispatch(self._callback, self._count)

    def set_count(self, count: int) -> None:
        if self._callback is None:
            return
        self._count = max(0, count)
        _dispatch(self._callback, self._count)


class SimulatedStepSource:
    """Stepper machine simulator with cadence drift and idle breaks.

    Emits like a hardware step counter: the raw total starts at an arbitrary
    value and is rebaselined on every start.
    """

    def __init__(
        self,
        cadence_spm: float = 60.0,
        tick_sec: float = 0.25,
        seed: int = 20260225,
        idle_breaks: bool = True,
    ) -> None:
        self._cadence_spm = max(1.0, cadence_spm)
        self._tick_sec = tick_sec
        self._rng = random.Random(seed)
        self._idle_breaks = idle_breaks
        self._callback: StepCallback | None = None
        self._task: Optional[asyncio.Task[None]] = None
        self._baseline = StepBaseline()
        self._raw_total = self._rng.randint(1_000, 50_000)
        self._fraction = 0.0
        self._tick = 0
        self._mode = "steady"
        self._mode_remaining = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, callback: StepCallback) -> None:
        await self.stop()
        self._callback = callback
        self._baseline.reset()
        self._fraction = 0.0
        self._task = asyncio.create_task(self._simulation_loop())
        logger.debug(f"Simulated step source started at {self._cadence_spm:.0f} spm")

    async def stop(self) -> None:
        self._callback = None
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    def _next_mode(self) -> None:
        roll = self._rng.random()
        ticks_per_sec = 1.0 / self._tick_sec
        if self._idle_breaks and roll < 0.08:
            self._mode = "rest"
            self._mode_remaining = int(self._rng.uniform(3.0, 6.0) * ticks_per_sec)
        elif roll < 0.25:
            self._mode = "surge"
            self._mode_remaining = int(self._rng.uniform(5.0, 12.0) * ticks_per_sec)
        else:
            self._mode = "steady"
            self._mode_remaining = int(self._rng.uniform(15.0, 40.0) * ticks_per_sec)

    async def _simulation_loop(self) -> None:
        self._baseline.steps_since_start(self._raw_total)
        while True:
            self._tick += 1
            if self._mode_remaining <= 0:
                self._next_mode()
            self._mode_remaining -= 1

            if self._mode == "rest":
                spm = 0.0
            else:
                periodic = 6.0 * math.sin(self._tick / 9.0)
                surge = self._rng.uniform(10.0, 25.0) if self._mode == "surge" else 0.0
                noise = self._rng.uniform(-4.0, 4.0)
                spm = max(0.0, self._cadence_spm + periodic + surge + noise)

            self._fraction += spm * self._tick_sec / 60.0
            whole = int(self._fraction)
            if whole > 0:
                self._fraction -= whole
                self._raw_total += whole
                _dispatch(self._callback, self._baseline.steps_since_start(self._raw_total))

            await asyncio.sleep(self._tick_sec)
