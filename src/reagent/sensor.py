"""Sensors: producers of readings fanned out to listeners.

A Sensor pushes each reading to every registered listener as an immutable
Notification. Delivery is synchronous in the producing thread; listeners
that need to do real work (Agents) hand it off to their own pools.

A sensor that reports a fatal error tells every listener once, forgets them,
and stays closed: later readings are dropped and new listeners are ignored.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Generic, TypeVar

from reagent import _ids
from reagent.errors import SensorError

T = TypeVar("T")

logger = logging.getLogger("reagent.sensor")


@dataclass(frozen=True, slots=True, eq=False, repr=False)
class Notification(Generic[T]):
    """One reading from one sensor. Frozen; compared by identity."""

    sensor: Sensor[T]
    value: T

    @property
    def sensor_id(self) -> int:
        return self.sensor.id

    def __repr__(self) -> str:
        return f"Notification(sensor={self.sensor.id}, value={self.value!r})"


class SensorListener:
    """Receives readings and the terminal error of the sensors it listens to.

    Both methods are no-ops by default; override what you need.
    """

    def notify(self, notification: Notification) -> None:
        pass

    def on_fatal_error(self, error: SensorError) -> None:
        pass


class Sensor(Generic[T]):
    """Base class for everything that produces readings.

    Subclasses call _emit() to publish a value. Equality and hashing are by
    identity; ``id`` is a stable token for use as a plain key.
    """

    def __init__(self) -> None:
        self.id = _ids.new_id()
        self._lock = threading.Lock()
        # dict as an insertion-ordered set
        self._listeners: dict[SensorListener, None] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def init(self) -> None:
        """Start producing readings. Sensors fed from outside need nothing here."""

    def add_listener(self, listener: SensorListener) -> None:
        """Register a listener. Adding the same listener twice is a no-op."""
        with self._lock:
            if not self._closed:
                self._listeners[listener] = None

    def remove_listener(self, listener: SensorListener) -> None:
        with self._lock:
            self._listeners.pop(listener, None)

    def _emit(self, value: T) -> None:
        """Deliver one reading to every current listener."""
        with self._lock:
            if self._closed:
                return
            listeners = list(self._listeners)
        notification = Notification(self, value)
        for listener in listeners:
            try:
                listener.notify(notification)
            except Exception:
                logger.exception("Listener %r failed on sensor %d", listener, self.id)

    def report_fatal_error(self, cause: BaseException | None = None) -> None:
        """Tell every listener this sensor is dead, then close it for good."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            listeners = list(self._listeners)
            self._listeners.clear()
        error = SensorError(self, f"sensor {self.id} reported a fatal error: {cause!r}")
        error.__cause__ = cause
        logger.warning("Sensor %d closed after fatal error: %r", self.id, cause)
        for listener in listeners:
            try:
                listener.on_fatal_error(error)
            except Exception:
                logger.exception("Listener %r failed handling fatal error of sensor %d", listener, self.id)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"{type(self).__name__}(id={self.id}, {state})"
