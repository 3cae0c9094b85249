"""Local persistence for the calibration factor and daily goal."""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path
from typing import Any

from loguru import logger

from stepper.config import settings
from stepper.core.errors import PersistenceFailure
from stepper.workout.model import DEFAULT_DAILY_CALORIES_GOAL, CalibrationData


def calibration_to_payload(data: CalibrationData) -> dict[str, Any]:
    return {
        "steps": int(data.steps),
        "calories": int(data.calories),
        "calories_per_step": float(data.calories_per_step),
        "time_per_step_ms": int(round(data.time_per_step.total_seconds() * 1000)),
        "daily_calories_goal": float(data.daily_calories_goal),
    }


def calibration_from_payload(payload: dict[str, Any]) -> CalibrationData:
    return CalibrationData(
        steps=int(payload.get("steps", 0)),
        calories=int(payload.get("calories", 0)),
        calories_per_step=max(0.0, float(payload.get("calories_per_step", 0.0))),
        time_per_step=timedelta(milliseconds=int(payload.get("time_per_step_ms", 0))),
        daily_calories_goal=float(
            payload.get("daily_calories_goal", DEFAULT_DAILY_CALORIES_GOAL)
        ),
    )


class CalibrationStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or settings.calibration_path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CalibrationData:
        if not self._path.exists():
            return CalibrationData()
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                raise ValueError("calibration payload must be an object")
            return calibration_from_payload(payload)
        except (OSError, ValueError, TypeError) as exc:
            logger.warning(f"Unreadable calibration file {self._path}, using defaults: {exc}")
            return CalibrationData()

    def save(self, data: CalibrationData) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(calibration_to_payload(data), ensure_ascii=True, indent=2),
                encoding="utf-8",
            )
        except OSError as exc:
            raise PersistenceFailure(f"Unable to save calibration to {self._path}") from exc
        logger.debug(f"Calibration saved: {data.calories_per_step:.4f} kcal/step")
