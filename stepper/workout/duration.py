"""Active-duration accounting and goal-time projection."""

from __future__ import annotations

import math
from datetime import timedelta

from stepper.core.state import WorkoutSession


def active_duration(session: WorkoutSession, now: float) -> timedelta:
    """Wall-clock time since start with every paused interval removed.

    While paused the reference point is the pause start, so repeated queries
    during a pause return the same value.
    """
    if session.start_time is None:
        return timedelta(0)
    if session.is_paused and session.pause_start_time is not None:
        reference = session.pause_start_time
    else:
        reference = now
    active_sec = reference - session.start_time - session.paused_duration_sec
    return timedelta(seconds=max(0.0, active_sec))


def estimated_time_to_goal(session: WorkoutSession, now: float) -> timedelta:
    """Linear extrapolation of the average pace observed so far."""
    if session.is_paused or session.target_calories <= 0 or session.current_calories <= 0:
        return timedelta(0)

    remaining = session.remaining_calories
    if remaining <= 0:
        return timedelta(0)

    active_sec = max(1, int(active_duration(session, now).total_seconds()))
    pace = session.current_calories / active_sec
    return timedelta(seconds=math.floor(remaining / pace))


def format_duration(duration: timedelta) -> str:
    total = max(0, int(duration.total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def format_calories(calories: float) -> str:
    if calories == int(calories):
        return str(int(calories))
    return f"{calories:.1f}".rstrip("0").rstrip(".")
