from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Callable

import pytest

from stepper.core.engine import WorkoutSessionEngine
from stepper.sensor.step_source import ManualStepSource
from stepper.workout.calibration_store import CalibrationStore
from stepper.workout.history_store import HistoryStore
from stepper.workout.model import CalibrationData

AUTO_PAUSE_SEC = 0.05


class FakeClock:
    def __init__(self, start: float = 1_750_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def calibration_store(tmp_path: Path) -> CalibrationStore:
    return CalibrationStore(tmp_path / "calibration.json")


@pytest.fixture
def history_store(tmp_path: Path) -> HistoryStore:
    return HistoryStore(tmp_path / "history.jsonl", today=lambda: date(2026, 3, 1))


@pytest.fixture
def step_source() -> ManualStepSource:
    return ManualStepSource()


@pytest.fixture
def make_engine(
    clock: FakeClock,
    calibration_store: CalibrationStore,
    history_store: HistoryStore,
    step_source: ManualStepSource,
) -> Callable[..., WorkoutSessionEngine]:
    def _make(calories_per_step: float = 0.5) -> WorkoutSessionEngine:
        if calories_per_step > 0:
            calibration_store.save(
                CalibrationData(
                    steps=100,
                    calories=int(calories_per_step * 100),
                    calories_per_step=calories_per_step,
                )
            )
        return WorkoutSessionEngine(
            step_source=step_source,
            calibration_store=calibration_store,
            history_store=history_store,
            auto_pause_delay_sec=AUTO_PAUSE_SEC,
            clock=clock,
        )

    return _make
