"""Today's calorie total against the daily goal."""

from __future__ import annotations

from dataclasses import dataclass

from stepper.core.state import SessionMode
from stepper.workout.model import CalibrationData, WorkoutRecord


@dataclass(frozen=True)
class DailySummary:
    workouts: int
    steps: int
    calories: float
    daily_goal: float

    @property
    def progress(self) -> float:
        if self.daily_goal <= 0:
            return 0.0
        return self.calories / self.daily_goal


def build_daily_summary(
    records: list[WorkoutRecord], calibration: CalibrationData
) -> DailySummary:
    # History is wiped at the first read of each day, so every record is today's.
    workouts = [r for r in records if r.session.mode is SessionMode.WORKOUT]
    return DailySummary(
        workouts=len(workouts),
        steps=sum(r.session.steps for r in workouts),
        calories=sum(r.session.current_calories for r in workouts),
        daily_goal=calibration.daily_calories_goal,
    )
