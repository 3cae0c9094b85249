from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from stepper.core.errors import PersistenceFailure
from stepper.workout.calibration_store import CalibrationStore
from stepper.workout.model import CalibrationData


def test_missing_file_loads_defaults(tmp_path: Path) -> None:
    data = CalibrationStore(tmp_path / "calibration.json").load()

    assert data == CalibrationData()
    assert data.daily_calories_goal == 300.0
    assert data.steps_per_calorie == 0.0
    assert not data.is_calibrated


def test_save_is_visible_to_next_load(tmp_path: Path) -> None:
    store = CalibrationStore(tmp_path / "nested" / "calibration.json")
    saved = CalibrationData(
        steps=150,
        calories=300,
        calories_per_step=2.0,
        time_per_step=timedelta(milliseconds=640),
        daily_calories_goal=450.0,
    )

    store.save(saved)

    assert store.load() == saved
    assert store.load().steps_per_calorie == pytest.approx(0.5)


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "calibration.json"
    path.write_text("[1, 2", encoding="utf-8")

    assert CalibrationStore(path).load() == CalibrationData()


def test_write_failure_raises_persistence_failure(tmp_path: Path) -> None:
    path = tmp_path / "calibration.json"
    path.mkdir()

    with pytest.raises(PersistenceFailure):
        CalibrationStore(path).save(CalibrationData(steps=1, calories=1, calories_per_step=1.0))


def test_negative_factor_loads_as_zero(tmp_path: Path) -> None:
    path = tmp_path / "calibration.json"
    path.write_text(
        '{"steps": 10, "calories": 5, "calories_per_step": -0.5, "time_per_step_ms": 400}',
        encoding="utf-8",
    )

    data = CalibrationStore(path).load()

    assert data.calories_per_step == 0.0
    assert not data.is_calibrated
    assert data.time_per_step == timedelta(milliseconds=400)
