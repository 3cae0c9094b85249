"""Error taxonomy for the step workout engine and its stores."""

from __future__ import annotations


class StepperError(Exception):
    """Base class for all Stepper Progress errors."""


class InvalidCalibration(StepperError, ValueError):
    """Raised when a calibration run cannot produce a calories-per-step factor."""


class InvalidGoalInput(StepperError, ValueError):
    """Raised when a user-entered calorie target is not a positive number."""


class PersistenceFailure(StepperError):
    """Raised when a store cannot read or write its backing file."""
