"""Exception hierarchy for reagent.

Failures inside dispatched behaviours never surface here; they stay on the
task's Future and in the log. These types cover the synchronous edges:
agent startup and sensors that die.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reagent.sensor import Sensor


class ReagentError(Exception):
    """Base class for all reagent errors."""


class AgentError(ReagentError):
    """An agent could not be initialized."""


class SensorError(ReagentError):
    """A sensor failed. Carries the sensor that failed."""

    def __init__(self, sensor: Sensor, message: str | None = None) -> None:
        super().__init__(message or f"sensor {sensor.id} failed")
        self.sensor = sensor


class SensorInitializationError(SensorError):
    """A sensor could not start producing readings."""
