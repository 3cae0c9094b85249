"""Validation of user-entered calorie targets."""

from __future__ import annotations

from stepper.core.errors import InvalidGoalInput


def parse_target_calories(raw: str | int) -> int:
    """Return a positive integer calorie target or raise InvalidGoalInput."""
    if isinstance(raw, bool):
        raise InvalidGoalInput("Target calories must be a number")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        try:
            value = int(text)
        except ValueError as exc:
            raise InvalidGoalInput(f"Target calories must be a whole number, got '{text}'") from exc
    if value <= 0:
        raise InvalidGoalInput(f"Target calories must be positive, got {value}")
    return value
