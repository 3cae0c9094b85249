from __future__ import annotations

import asyncio

from stepper.core.scheduler import AutoPauseScheduler


def test_fires_once_after_delay() -> None:
    async def _run() -> None:
        fired: list[int] = []
        scheduler = AutoPauseScheduler(0.05, lambda: fired.append(1))

        scheduler.arm()
        assert scheduler.pending
        await asyncio.sleep(0.2)

        assert fired == [1]
        assert not scheduler.pending

    asyncio.run(_run())


def test_rearm_postpones_the_action() -> None:
    async def _run() -> None:
        fired: list[int] = []
        scheduler = AutoPauseScheduler(0.1, lambda: fired.append(1))

        scheduler.arm()
        for _ in range(4):
            await asyncio.sleep(0.05)
            scheduler.arm()
        assert fired == []

        await asyncio.sleep(0.25)
        assert fired == [1]

    asyncio.run(_run())


def test_cancel_is_a_noop_when_idle_or_already_fired() -> None:
    async def _run() -> None:
        fired: list[int] = []
        scheduler = AutoPauseScheduler(0.02, lambda: fired.append(1))

        scheduler.cancel()
        assert not scheduler.pending

        scheduler.arm()
        await asyncio.sleep(0.1)
        scheduler.cancel()
        assert fired == [1]

        scheduler.arm()
        scheduler.cancel()
        await asyncio.sleep(0.1)
        assert fired == [1]

    asyncio.run(_run())


def test_generation_advances_on_arm_and_cancel() -> None:
    async def _run() -> None:
        scheduler = AutoPauseScheduler(1.0, lambda: None)
        start = scheduler.generation

        scheduler.arm()
        scheduler.cancel()

        assert scheduler.generation > start
        assert not scheduler.pending

    asyncio.run(_run())
