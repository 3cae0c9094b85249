"""Workout session snapshot owned by the engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionMode(str, Enum):
    IDLE = "idle"
    CALIBRATION = "calibration"
    WORKOUT = "workout"


@dataclass(frozen=True)
class WorkoutSession:
    target_calories: float = 0.0
    current_calories: float = 0.0
    steps: int = 0
    start_time: float | None = None
    is_paused: bool = False
    is_auto_paused: bool = False
    pause_start_time: float | None = None
    paused_duration_sec: float = 0.0
    is_moving_up: bool = True
    mode: SessionMode = SessionMode.IDLE

    @property
    def is_active(self) -> bool:
        return self.mode is not SessionMode.IDLE

    @property
    def progress_percentage(self) -> float:
        if self.target_calories <= 0:
            return 0.0
        return (self.current_calories / self.target_calories) * 100.0

    @property
    def remaining_calories(self) -> float:
        return self.target_calories - self.current_calories

    @property
    def is_goal_achieved(self) -> bool:
        return self.target_calories > 0 and self.current_calories >= self.target_calories
