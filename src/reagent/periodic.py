"""Timer-driven and externally fed sensors.

PeriodicSensor runs its own daemon thread (one per sensor, independent of
any agent pool) and emits a reading every ``period`` seconds after an
initial ``delay``. Ticks are fixed-delay: a slow listener pushes the next
tick back rather than causing a burst.

stop() is final. Once it returns, no further tick is delivered, even if the
timer thread had already woken up for one.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, TypeVar

from reagent.sensor import Sensor

T = TypeVar("T")

DEFAULT_DELAY = 0.5

logger = logging.getLogger("reagent.periodic")


class PeriodicSensor(Sensor[T]):
    """Emit a reading on a fixed period from a daemon timer thread.

    Usage:
        ticks = PeriodicSensor(0.5)
        agent.bind(on_tick, ticks)
        agent.init()          # starts the timer
        ...
        ticks.stop()

    Without ``value_fn`` each reading is the 1-based tick count.
    """

    def __init__(
        self,
        period: float,
        *,
        delay: float = DEFAULT_DELAY,
        value_fn: Callable[[], T] | None = None,
    ) -> None:
        if period <= 0:
            raise ValueError(f"period must be positive, got {period!r}")
        if delay < 0:
            raise ValueError(f"delay cannot be negative, got {delay!r}")
        super().__init__()
        self.period = period
        self.delay = delay
        self._value_fn = value_fn
        self._ticks = 0
        self._stopped = threading.Event()
        # Reentrant: a listener on the timer thread may call stop().
        self._tick_lock = threading.RLock()
        self._thread: threading.Thread | None = None

    @property
    def ticks(self) -> int:
        """Number of readings emitted so far."""
        return self._ticks

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def init(self) -> None:
        """Start the timer thread. Calling it again while running is a no-op."""
        if self._thread is not None or self.stopped:
            return
        self._thread = threading.Thread(
            target=self._run, name=f"reagent-periodic-{self.id}", daemon=True
        )
        self._thread.start()
        logger.info("Periodic sensor %d started (period=%.3fs)", self.id, self.period)

    def stop(self) -> None:
        """Stop ticking. No reading is emitted after this returns."""
        with self._tick_lock:
            if self._stopped.is_set():
                return
            self._stopped.set()
        logger.info("Periodic sensor %d stopped after %d ticks", self.id, self._ticks)

    def _run(self) -> None:
        wait = self.delay
        while not self._stopped.wait(wait):
            wait = self.period
            with self._tick_lock:
                if self._stopped.is_set() or self.closed:
                    return
                self._ticks += 1
                if self._value_fn is None:
                    value = self._ticks
                else:
                    try:
                        value = self._value_fn()
                    except Exception as exc:
                        self.report_fatal_error(exc)
                        return
                self._emit(value)


class ManualSensor(Sensor[T]):
    """A sensor fed from outside: whoever holds it calls emit()."""

    def emit(self, value: T) -> None:
        self._emit(value)
