"""Step workout session engine.

Owns the current :class:`WorkoutSession`, turns the cumulative step stream
into calorie accrual, and handles manual pause, inactivity auto-pause and
session completion. All methods must be called from the event loop thread;
synchronous operations never yield, so they are serialised with respect to
each other and to the auto-pause timer.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import uuid4

from loguru import logger

from stepper.config import settings
from stepper.core.errors import InvalidCalibration, PersistenceFailure
from stepper.core.scheduler import AutoPauseScheduler
from stepper.core.state import SessionMode, WorkoutSession
from stepper.sensor.step_source import ManualStepSource, StepSource
from stepper.workout.calibration_store import CalibrationStore
from stepper.workout.calories import effective_calories_per_step
from stepper.workout.duration import active_duration, estimated_time_to_goal
from stepper.workout.history_store import HistoryStore
from stepper.workout.model import CalibrationData, WorkoutRecord

SessionCallback = Callable[[WorkoutSession], None]


class WorkoutSessionEngine:
    def __init__(
        self,
        step_source: StepSource | None = None,
        calibration_store: CalibrationStore | None = None,
        history_store: HistoryStore | None = None,
        auto_pause_delay_sec: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source: StepSource = step_source or ManualStepSource()
        self._calibration_store = calibration_store or CalibrationStore()
        self._history_store = history_store or HistoryStore()
        self._clock = clock
        delay = settings.auto_pause_delay_sec if auto_pause_delay_sec is None else auto_pause_delay_sec
        self._auto_pause = AutoPauseScheduler(delay, self._on_auto_pause)
        self._subscribers: list[SessionCallback] = []
        self._session = WorkoutSession()
        self._calibration = self._calibration_store.load()
        self._last_step_count = 0

    @property
    def session(self) -> WorkoutSession:
        return self._session

    @property
    def calibration(self) -> CalibrationData:
        return self._calibration

    @property
    def needs_calibration(self) -> bool:
        return not self._calibration.is_calibrated

    @property
    def auto_pause_pending(self) -> bool:
        return self._auto_pause.pending

    def subscribe(self, callback: SessionCallback) -> Callable[[], None]:
        """Register for session snapshots, starting with the current one.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)
        callback(self._session)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def refresh_calibration(self) -> CalibrationData:
        self._calibration = self._calibration_store.load()
        return self._calibration

    # Lifecycle

    async def start_calibration(self) -> None:
        logger.info("Starting calibration run")
        self._reset_session()
        self._publish(
            WorkoutSession(
                start_time=self._clock(),
                mode=SessionMode.CALIBRATION,
            )
        )
        await self._source.start(self._on_step_count)

    async def end_calibration(self, total_calories: int) -> CalibrationData:
        session = self._session
        if session.mode is not SessionMode.CALIBRATION:
            raise InvalidCalibration("No calibration run in progress")
        if session.steps == 0:
            raise InvalidCalibration("Cannot calibrate without any recorded steps")
        if total_calories < 0:
            raise InvalidCalibration(f"Calories burned cannot be negative, got {total_calories}")

        duration = self.get_workout_duration()
        calibration = CalibrationData(
            steps=session.steps,
            calories=total_calories,
            calories_per_step=total_calories / session.steps,
            time_per_step=duration / session.steps,
            daily_calories_goal=self._calibration.daily_calories_goal,
        )
        record = self._build_record(session, calibration, duration)
        self._calibration = calibration
        self._reset_session()
        logger.info(
            f"Calibration finished: {session.steps} steps, {total_calories} kcal, "
            f"{calibration.calories_per_step:.4f} kcal/step"
        )

        await self._source.stop()
        try:
            await asyncio.to_thread(self._calibration_store.save, calibration)
        except PersistenceFailure:
            logger.exception("Calibration could not be saved")
        await self._persist_record(record)
        return calibration

    async def start_workout(self, target_calories: int) -> None:
        if target_calories <= 0:
            logger.warning(f"Starting workout with non-positive target {target_calories} kcal")
        logger.info(f"Starting workout with target {target_calories} kcal")
        self._reset_session()
        self._publish(
            WorkoutSession(
                target_calories=float(target_calories),
                start_time=self._clock(),
                is_moving_up=True,
                mode=SessionMode.WORKOUT,
            )
        )
        await self._source.start(self._on_step_count)

    async def end_workout(self) -> WorkoutRecord | None:
        self._auto_pause.cancel()
        session = self._session
        record: WorkoutRecord | None = None
        if session.is_active and session.steps > 0:
            record = self._build_record(session, self._calibration, self.get_workout_duration())
        logger.info(
            f"Ending {session.mode.value} session: {session.steps} steps, "
            f"{session.current_calories:.1f} kcal"
        )
        self._reset_session()

        await self._source.stop()
        if record is not None:
            await self._persist_record(record)
        return record

    async def discard_session(self) -> None:
        """Drop the current session without writing a record."""
        session = self._session
        if session.is_active:
            logger.info(f"Discarding {session.mode.value} session after {session.steps} steps")
        self._reset_session()
        await self._source.stop()

    async def load_history(self) -> list[WorkoutRecord]:
        try:
            records = await asyncio.to_thread(self._history_store.load_all)
        except PersistenceFailure:
            logger.exception("Workout history could not be loaded")
            return []
        logger.debug(f"Workout history loaded: {len(records)} records")
        return records

    async def close(self) -> None:
        self._auto_pause.cancel()
        await self._source.stop()

    # Step stream

    def update_steps(self, cumulative_count: int) -> None:
        if cumulative_count < self._last_step_count:
            logger.info(
                f"Step source went from {self._last_step_count} to {cumulative_count}, rebaselining"
            )
            self._last_step_count = cumulative_count
            return
        to_add = cumulative_count - self._last_step_count
        self._last_step_count = cumulative_count
        for _ in range(to_add):
            self.record_step()

    def record_step(self) -> None:
        session = self._session
        if not session.is_active:
            logger.debug("Ignoring step while idle")
            return

        self._auto_pause.cancel()
        if session.is_paused and session.is_auto_paused:
            logger.info("Resuming from auto-pause")
            session = _resume(session, self._clock())
        self._auto_pause.arm()

        per_step = effective_calories_per_step(
            self._calibration.calories_per_step, session.is_moving_up
        )
        session = replace(
            session,
            steps=session.steps + 1,
            current_calories=session.current_calories + per_step,
        )
        logger.debug(
            f"Step {session.steps}: calories={session.current_calories:.2f}, "
            f"direction={'up' if session.is_moving_up else 'down'}"
        )
        self._publish(session)

    # Commands

    def toggle_pause(self) -> None:
        session = self._session
        if not session.is_active:
            return
        if session.is_paused:
            logger.info("Resuming session")
            session = _resume(session, self._clock())
            self._auto_pause.arm()
        else:
            logger.info("Pausing session")
            self._auto_pause.cancel()
            session = replace(
                session,
                is_paused=True,
                is_auto_paused=False,
                pause_start_time=self._clock(),
            )
        self._publish(session)

    def toggle_direction(self) -> None:
        session = self._session
        is_moving_up = not session.is_moving_up
        logger.info(f"Direction set to {'up' if is_moving_up else 'down'}")
        self._publish(replace(session, is_moving_up=is_moving_up))

    # Derived values

    def get_workout_duration(self) -> timedelta:
        return active_duration(self._session, self._clock())

    def get_estimated_time_to_goal(self) -> timedelta:
        return estimated_time_to_goal(self._session, self._clock())

    # Internals

    def _on_step_count(self, cumulative_count: int) -> None:
        self.update_steps(cumulative_count)

    def _on_auto_pause(self) -> None:
        session = self._session
        if not session.is_active or session.is_paused:
            return
        logger.info("Auto-pausing session due to inactivity")
        self._publish(
            replace(
                session,
                is_paused=True,
                is_auto_paused=True,
                pause_start_time=self._clock(),
            )
        )

    def _reset_session(self) -> None:
        self._auto_pause.cancel()
        self._last_step_count = 0
        self._publish(WorkoutSession())

    def _publish(self, session: WorkoutSession) -> None:
        self._session = session
        for callback in list(self._subscribers):
            try:
                callback(session)
            except Exception:
                logger.exception("Session subscriber failed")

    def _build_record(
        self,
        session: WorkoutSession,
        calibration: CalibrationData,
        duration: timedelta,
    ) -> WorkoutRecord:
        started = session.start_time if session.start_time is not None else self._clock()
        return WorkoutRecord(
            id=uuid4().hex,
            date=datetime.fromtimestamp(self._clock(), tz=timezone.utc),
            session=session,
            calibration=calibration,
            timestamp=datetime.fromtimestamp(started, tz=timezone.utc),
            duration=duration,
        )

    async def _persist_record(self, record: WorkoutRecord) -> None:
        try:
            await asyncio.to_thread(self._history_store.append, record)
        except PersistenceFailure:
            logger.exception(f"Workout record {record.id} could not be saved")
            return
        logger.info(f"Workout record {record.id} saved")


def _resume(session: WorkoutSession, now: float) -> WorkoutSession:
    paused_for = 0.0
    if session.pause_start_time is not None:
        paused_for = max(0.0, now - session.pause_start_time)
    return replace(
        session,
        is_paused=False,
        is_auto_paused=False,
        pause_start_time=None,
        paused_duration_sec=session.paused_duration_sec + paused_for,
    )
