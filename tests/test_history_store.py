from __future__ import annotations

import threading
import time
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from stepper.core.state import SessionMode, WorkoutSession
from stepper.workout.history_store import HistoryStore
from stepper.workout.model import CalibrationData, WorkoutRecord


def _record(record_id: str, steps: int, calories: float) -> WorkoutRecord:
    return WorkoutRecord(
        id=record_id,
        date=datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
        session=WorkoutSession(
            target_calories=50.0,
            current_calories=calories,
            steps=steps,
            start_time=1_772_356_800.0,
            paused_duration_sec=12.5,
            is_moving_up=False,
            mode=SessionMode.WORKOUT,
        ),
        calibration=CalibrationData(
            steps=150,
            calories=300,
            calories_per_step=2.0,
            time_per_step=timedelta(milliseconds=500),
        ),
        timestamp=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc),
        duration=timedelta(minutes=17, seconds=30),
    )


class _Today:
    def __init__(self, value: date) -> None:
        self.value = value

    def __call__(self) -> date:
        return self.value


def test_append_and_load_in_insertion_order(tmp_path: Path) -> None:
    store = HistoryStore(tmp_path / "history.jsonl", today=lambda: date(2026, 3, 1))
    first = _record("a", 120, 30.0)
    second = _record("b", 80, 22.5)

    store.append(first)
    store.append(second)
    loaded = store.load_all()

    assert [r.id for r in loaded] == ["a", "b"]
    assert loaded[0] == first
    assert loaded[1].session.is_moving_up is False
    assert loaded[1].calibration.time_per_step == timedelta(milliseconds=500)


def test_first_read_keeps_existing_records(tmp_path: Path) -> None:
    store = HistoryStore(tmp_path / "history.jsonl", today=lambda: date(2026, 3, 1))
    store.append(_record("a", 10, 5.0))

    assert [r.id for r in store.load_all()] == ["a"]
    assert (tmp_path / "history_meta.json").exists()


def test_read_on_same_day_keeps_records(tmp_path: Path) -> None:
    store = HistoryStore(tmp_path / "history.jsonl", today=lambda: date(2026, 3, 1))
    store.load_all()
    store.append(_record("a", 10, 5.0))
    store.append(_record("b", 12, 6.0))

    assert len(store.load_all()) == 2
    assert len(store.load_all()) == 2


def test_read_on_new_day_clears_records(tmp_path: Path) -> None:
    today = _Today(date(2026, 3, 1))
    store = HistoryStore(tmp_path / "history.jsonl", today=today)
    store.load_all()
    store.append(_record("a", 10, 5.0))

    today.value = date(2026, 3, 2)
    assert store.load_all() == []

    store.append(_record("b", 12, 6.0))
    assert [r.id for r in store.load_all()] == ["b"]


def test_unreadable_lines_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "history.jsonl"
    store = HistoryStore(path, today=lambda: date(2026, 3, 1))
    store.append(_record("a", 10, 5.0))
    with path.open("a", encoding="utf-8") as handle:
        handle.write("{not json}\n\n")
    store.append(_record("b", 12, 6.0))

    assert [r.id for r in store.load_all()] == ["a", "b"]


class _SlowClearHistoryStore(HistoryStore):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.clearing = threading.Event()

    def clear(self) -> None:
        self.clearing.set()
        time.sleep(0.1)
        super().clear()


def test_append_during_new_day_cleanup_is_kept(tmp_path: Path) -> None:
    today = _Today(date(2026, 3, 1))
    store = _SlowClearHistoryStore(tmp_path / "history.jsonl", today=today)
    store.load_all()
    store.append(_record("old", 10, 5.0))
    today.value = date(2026, 3, 2)

    reader = threading.Thread(target=store.load_all)
    reader.start()
    assert store.clearing.wait(timeout=2)
    store.append(_record("new", 12, 6.0))
    reader.join(timeout=2)

    assert [r.id for r in store.load_all()] == ["new"]
