"""Agents: route sensor readings to behaviours on a worker pool.

An Agent owns a set of sensors and, per sensor, a set of behaviours (plain
callables taking a Notification). Each reading submits one task per bound
behaviour to the agent's pool; the producer never waits for them and never
sees their exceptions.

In-flight executions are tracked by Future, keyed by behaviour, and
dropped the moment they finish. The map is only touched under _lock, so
worker threads can finish tasks while a new reading is being dispatched.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable

from reagent import pool as _pool
from reagent.errors import AgentError, SensorError
from reagent.sensor import Notification, Sensor, SensorListener

Behaviour = Callable[[Notification], None]

logger = logging.getLogger("reagent.agent")


class _AgentListener(SensorListener):
    """The agent's subscription to one sensor."""

    __slots__ = ("_agent", "_sensor")

    def __init__(self, agent: Agent, sensor: Sensor) -> None:
        self._agent = agent
        self._sensor = sensor

    def notify(self, notification: Notification) -> None:
        self._agent._dispatch(notification)

    def on_fatal_error(self, error: SensorError) -> None:
        self._agent._drop_sensor(self._sensor, error)


class Agent:
    """Runs bound behaviours whenever one of its sensors produces a reading.

    Pool discipline is fixed at construction (see reagent.pool):
        Agent()                          # cached, unbounded
        Agent(pool="fixed", workers=4)   # at most 4 behaviours at once
        Agent(pool="single")             # serialized, submission order

    Subclasses override setup() to bind their behaviours and
    on_remove_sensor() to react to a sensor dying.
    """

    def __init__(
        self,
        pool: str = _pool.CACHED,
        workers: int | None = None,
        *,
        idle_timeout: float = _pool.DEFAULT_IDLE_TIMEOUT,
    ) -> None:
        self._executor = _pool.make_pool(
            pool, workers, idle_timeout=idle_timeout, name=f"reagent-{type(self).__name__.lower()}"
        )
        self.pool = pool
        self._lock = threading.Lock()
        self._bindings: dict[Sensor, dict[Behaviour, None]] = {}
        self._listeners: dict[Sensor, _AgentListener] = {}
        self._running: dict[Behaviour, set[Future]] = {}

    # ─── Wiring ──────────────────────────────────────────────────────────

    def add_sensor(self, sensor: Sensor) -> None:
        """Listen to sensor. Adding a known or closed sensor is a no-op."""
        with self._lock:
            if sensor in self._bindings or sensor.closed:
                return
            listener = _AgentListener(self, sensor)
            self._bindings[sensor] = {}
            self._listeners[sensor] = listener
        sensor.add_listener(listener)

    def remove_sensor(self, sensor: Sensor) -> None:
        """Stop listening to sensor and forget its behaviours.

        Executions already submitted keep running.
        """
        with self._lock:
            self._bindings.pop(sensor, None)
            listener = self._listeners.pop(sensor, None)
        if listener is not None:
            sensor.remove_listener(listener)

    def bind(self, behaviour: Behaviour, sensor: Sensor) -> None:
        """Run behaviour on every reading of sensor. Idempotent per pair."""
        self.add_sensor(sensor)
        with self._lock:
            behaviours = self._bindings.get(sensor)
            if behaviours is None:
                # The sensor is closed, or died after add_sensor().
                return
            behaviours[behaviour] = None

    @property
    def sensors(self) -> tuple[Sensor, ...]:
        with self._lock:
            return tuple(self._bindings)

    def behaviours(self, sensor: Sensor) -> tuple[Behaviour, ...]:
        with self._lock:
            return tuple(self._bindings.get(sensor, ()))

    # ─── Lifecycle ───────────────────────────────────────────────────────

    def init(self, init_sensors: bool = True) -> None:
        """Run setup(), then start every sensor.

        A failing sensor aborts startup with one AgentError; sensors that
        already started are left running.
        """
        try:
            self.setup()
            if init_sensors:
                for sensor in self.sensors:
                    sensor.init()
        except SensorError as exc:
            raise AgentError(
                "It is not possible to initialize the agent because an error "
                "occurred during sensor initialization."
            ) from exc
        logger.debug("%r initialized with %d sensors", self, len(self.sensors))

    def setup(self) -> None:
        """One-time setup hook, run first thing in init()."""

    def on_remove_sensor(self, error: SensorError) -> None:
        """Called after a sensor that reported a fatal error was dropped."""

    def shutdown(self, wait: bool = True) -> None:
        """Release the worker pool. Readings arriving afterwards are dropped."""
        self._executor.shutdown(wait=wait)

    # ─── In-flight executions ────────────────────────────────────────────

    def running(self, behaviour: Behaviour) -> tuple[Future, ...]:
        """Futures of the executions of behaviour still in flight."""
        with self._lock:
            return tuple(self._running.get(behaviour, ()))

    @property
    def in_flight(self) -> int:
        with self._lock:
            return sum(len(futures) for futures in self._running.values())

    def cancel(self, behaviour: Behaviour) -> int:
        """Cancel executions of behaviour that have not started yet.

        Returns how many were cancelled. Running executions are left alone.
        """
        return sum(1 for future in self.running(behaviour) if future.cancel())

    # ─── Delivery ────────────────────────────────────────────────────────

    def _dispatch(self, notification: Notification) -> None:
        with self._lock:
            behaviours = list(self._bindings.get(notification.sensor, ()))
        for behaviour in behaviours:
            self._execute(behaviour, notification)

    def _execute(self, behaviour: Behaviour, notification: Notification) -> None:
        try:
            future = self._executor.submit(self._invoke, behaviour, notification)
        except RuntimeError:
            logger.warning("%r is shut down; dropping %r", self, notification)
            return
        with self._lock:
            self._running.setdefault(behaviour, set()).add(future)
        # Runs immediately if the task already finished.
        future.add_done_callback(lambda f, b=behaviour: self._finished(b, f))

    def _invoke(self, behaviour: Behaviour, notification: Notification) -> None:
        try:
            behaviour(notification)
        except Exception:
            logger.exception("Behaviour %r failed on %r", behaviour, notification)
            raise

    def _finished(self, behaviour: Behaviour, future: Future) -> None:
        with self._lock:
            futures = self._running.get(behaviour)
            if futures is None:
                return
            futures.discard(future)
            if not futures:
                del self._running[behaviour]

    def _drop_sensor(self, sensor: Sensor, error: SensorError) -> None:
        with self._lock:
            self._bindings.pop(sensor, None)
            self._listeners.pop(sensor, None)
        self.on_remove_sensor(error)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(pool={self.pool!r})"
