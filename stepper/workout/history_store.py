"""Local persistence for completed sessions with a once-a-day retention policy.

Records are appended one JSON object per line. A sidecar file remembers the
local calendar date of the last cleanup; the first read on a new day wipes
the records before returning them. The very first read only stamps the date.
"""

from __future__ import annotations

import json
import threading
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from stepper.config import settings
from stepper.core.errors import PersistenceFailure
from stepper.core.state import SessionMode, WorkoutSession
from stepper.workout.calibration_store import calibration_from_payload, calibration_to_payload
from stepper.workout.model import WorkoutRecord


def _session_to_payload(session: WorkoutSession) -> dict[str, Any]:
    return {
        "target_calories": session.target_calories,
        "current_calories": session.current_calories,
        "steps": session.steps,
        "start_time": session.start_time,
        "is_paused": session.is_paused,
        "is_auto_paused": session.is_auto_paused,
        "pause_start_time": session.pause_start_time,
        "paused_duration_sec": session.paused_duration_sec,
        "is_moving_up": session.is_moving_up,
        "mode": session.mode.value,
    }


def _session_from_payload(payload: dict[str, Any]) -> WorkoutSession:
    return WorkoutSession(
        target_calories=float(payload["target_calories"]),
        current_calories=float(payload["current_calories"]),
        steps=int(payload["steps"]),
        start_time=payload.get("start_time"),
        is_paused=bool(payload.get("is_paused", False)),
        is_auto_paused=bool(payload.get("is_auto_paused", False)),
        pause_start_time=payload.get("pause_start_time"),
        paused_duration_sec=float(payload.get("paused_duration_sec", 0.0)),
        is_moving_up=bool(payload.get("is_moving_up", True)),
        mode=SessionMode(payload.get("mode", SessionMode.WORKOUT.value)),
    )


def record_to_payload(record: WorkoutRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "date": record.date.isoformat(),
        "session": _session_to_payload(record.session),
        "calibration": calibration_to_payload(record.calibration),
        "timestamp": record.timestamp.isoformat(),
        "duration_ms": int(round(record.duration.total_seconds() * 1000)),
    }


def record_from_payload(payload: dict[str, Any]) -> WorkoutRecord:
    return WorkoutRecord(
        id=str(payload["id"]),
        date=datetime.fromisoformat(payload["date"]),
        session=_session_from_payload(payload["session"]),
        calibration=calibration_from_payload(payload["calibration"]),
        timestamp=datetime.fromisoformat(payload["timestamp"]),
        duration=timedelta(milliseconds=int(payload["duration_ms"])),
    )


class HistoryStore:
    def __init__(
        self,
        path: Path | None = None,
        meta_path: Path | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._path = path or settings.history_path
        self._meta_path = meta_path or self._path.with_name(f"{self._path.stem}_meta.json")
        self._today = today
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def append(self, record: WorkoutRecord) -> None:
        line = json.dumps(record_to_payload(record), ensure_ascii=True) + "\n"
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as handle:
                    handle.write(line)
            except OSError as exc:
                raise PersistenceFailure(f"Unable to append record to {self._path}") from exc

    def load_all(self) -> list[WorkoutRecord]:
        # Appends wait until the cleanup and the read have both finished.
        with self._lock:
            self._cleanup_if_new_day()
            if not self._path.exists():
                return []
            try:
                lines = self._path.read_text(encoding="utf-8").splitlines()
            except OSError as exc:
                raise PersistenceFailure(f"Unable to read {self._path}") from exc

        out: list[WorkoutRecord] = []
        for raw in lines:
            if not raw.strip():
                continue
            try:
                out.append(record_from_payload(json.loads(raw)))
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning(f"Skipping unreadable history line: {exc}")
                continue
        return out

    def clear(self) -> None:
        with self._lock:
            try:
                if self._path.exists():
                    self._path.write_text("", encoding="utf-8")
            except OSError as exc:
                raise PersistenceFailure(f"Unable to clear {self._path}") from exc

    def _last_cleanup_date(self) -> date | None:
        if not self._meta_path.exists():
            return None
        try:
            payload = json.loads(self._meta_path.read_text(encoding="utf-8"))
            return date.fromisoformat(payload["last_cleanup_date"])
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning(f"Ignoring unreadable cleanup marker {self._meta_path}: {exc}")
            return None

    def _cleanup_if_new_day(self) -> None:
        today = self._today()
        last = self._last_cleanup_date()
        if last == today:
            return
        if last is not None:
            logger.info(f"New day since {last.isoformat()}, clearing workout history")
            self.clear()
        try:
            self._meta_path.parent.mkdir(parents=True, exist_ok=True)
            self._meta_path.write_text(
                json.dumps({"last_cleanup_date": today.isoformat()}, ensure_ascii=True),
                encoding="utf-8",
            )
        except OSError as exc:
            raise PersistenceFailure(f"Unable to write {self._meta_path}") from exc
