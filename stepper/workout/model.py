"""Calibration and history domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from stepper.core.state import WorkoutSession

DEFAULT_DAILY_CALORIES_GOAL = 300.0


@dataclass(frozen=True)
class CalibrationData:
    steps: int = 0
    calories: int = 0
    calories_per_step: float = 0.0
    time_per_step: timedelta = field(default_factory=timedelta)
    daily_calories_goal: float = DEFAULT_DAILY_CALORIES_GOAL

    @property
    def is_calibrated(self) -> bool:
        return self.calories_per_step > 0

    @property
    def steps_per_calorie(self) -> float:
        if self.calories_per_step <= 0:
            return 0.0
        return 1.0 / self.calories_per_step


@dataclass(frozen=True)
class WorkoutRecord:
    id: str
    date: datetime
    session: WorkoutSession
    calibration: CalibrationData
    timestamp: datetime
    duration: timedelta
