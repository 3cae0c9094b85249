"""Manual editing of the calories-per-step factor and the daily goal."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import replace
from typing import Optional

from loguru import logger

from stepper.config import settings
from stepper.core.errors import PersistenceFailure
from stepper.workout.calibration_store import CalibrationStore


def _reciprocal(value: float) -> float:
    return 1.0 / value if value > 0 else 0.0


class CalibrationSettingsEditor:
    """Keeps calories-per-step and steps-per-calorie in sync until saved.

    ``save_success`` is raised only after the store confirms the write and
    drops back to False after ``success_clear_sec``.
    """

    def __init__(
        self,
        store: CalibrationStore | None = None,
        success_clear_sec: float | None = None,
    ) -> None:
        self._store = store or CalibrationStore()
        self._success_clear_sec = (
            settings.save_success_clear_sec if success_clear_sec is None else success_clear_sec
        )
        self._clear_task: Optional[asyncio.Task[None]] = None
        self.save_success = False
        current = self._store.load()
        self.calories_per_step = current.calories_per_step
        self.steps_per_calorie = current.steps_per_calorie
        self.daily_calories_goal = current.daily_calories_goal

    def update_calories_per_step(self, calories: float) -> None:
        self.calories_per_step = calories
        self.steps_per_calorie = _reciprocal(calories)

    def update_steps_per_calorie(self, steps: float) -> None:
        self.steps_per_calorie = steps
        self.calories_per_step = _reciprocal(steps)

    def update_daily_goal(self, calories: float) -> None:
        self.daily_calories_goal = max(0.0, calories)

    async def save(self) -> bool:
        self._cancel_clear()
        try:
            current = await asyncio.to_thread(self._store.load)
            await asyncio.to_thread(
                self._store.save,
                replace(
                    current,
                    calories_per_step=max(0.0, self.calories_per_step),
                    daily_calories_goal=self.daily_calories_goal,
                ),
            )
        except PersistenceFailure as exc:
            logger.warning(f"Calibration settings not saved: {exc}")
            self.save_success = False
            return False

        self.save_success = True
        self._clear_task = asyncio.create_task(self._clear_success_later())
        return True

    async def close(self) -> None:
        task = self._clear_task
        self._cancel_clear()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _cancel_clear(self) -> None:
        if self._clear_task is not None and not self._clear_task.done():
            self._clear_task.cancel()
        self._clear_task = None

    async def _clear_success_later(self) -> None:
        await asyncio.sleep(self._success_clear_sec)
        self.save_success = False
