"""Per-step calorie rule."""

from __future__ import annotations

# Share of the base factor burned on the downward phase of a step.
DOWNWARD_FACTOR = 0.35


def effective_calories_per_step(base_calories_per_step: float, is_moving_up: bool) -> float:
    if is_moving_up:
        return base_calories_per_step
    return base_calories_per_step * DOWNWARD_FACTOR
