"""Line automata: N cell agents advancing in lock-step generations.

Every cell listens to one shared tick sensor. A tick starts N independent
computations on the cells' pools; each cell reads only committed states,
parks its result and reports back. Reports are counted under one lock, and
the report that completes the count commits the whole line, publishes the
new generation and resets the count, all inside that same lock. No cell can
therefore see a neighbour's next state while computing its own.

A round that never collects N reports (a transition raised, or the line was
stopped between reports) stays in the collecting state for good. There is no
round timeout.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, Sequence, TypeVar

from reagent import pool as _pool
from reagent.cell import CellAgent, Transition
from reagent.errors import AgentError, SensorError
from reagent.periodic import DEFAULT_DELAY, PeriodicSensor
from reagent.rules import life_rule, parse_pattern
from reagent.sensor import Sensor, SensorListener

S = TypeVar("S")

CommitHook = Callable[[int, tuple], None]
ErrorHook = Callable[[SensorError], None]

logger = logging.getLogger("reagent.automaton")


class _FatalErrorListener(SensorListener):
    __slots__ = ("_automaton",)

    def __init__(self, automaton: LinearAutomaton) -> None:
        self._automaton = automaton

    def on_fatal_error(self, error: SensorError) -> None:
        self._automaton._sensor_died(error)


class LinearAutomaton(Generic[S]):
    """An open line of cell agents driven by one shared tick.

    Usage:
        line = LinearAutomaton(
            [Life.ALIVE, Life.DEAD, Life.ALIVE],
            life_rule,
            period=0.5,
            on_commit=lambda gen, states: print(gen, format_states(states)),
        )
        line.init()     # publishes generation 0, then starts ticking
        ...
        line.stop()

    ``sensor`` replaces the default PeriodicSensor, e.g. with a
    ManualSensor to drive rounds by hand. The pool options are passed to
    every cell.

    Keep ``period`` longer than one round takes to compute. Rounds are not
    numbered: a tick that arrives while a round is still collecting lets
    fast cells report again into that open round, and its commit can then
    publish a mix of old and new states.
    """

    def __init__(
        self,
        states: Sequence[S],
        transition: Transition,
        *,
        period: float = 0.5,
        delay: float = DEFAULT_DELAY,
        sensor: Sensor | None = None,
        on_commit: CommitHook | None = None,
        on_error: ErrorHook | None = None,
        pool: str = _pool.CACHED,
        workers: int | None = None,
        idle_timeout: float = _pool.DEFAULT_IDLE_TIMEOUT,
    ) -> None:
        if not states:
            raise ValueError("a line automaton needs at least one cell")
        self._sensor = sensor if sensor is not None else PeriodicSensor(period, delay=delay)
        self._on_commit = on_commit
        self._on_error = on_error
        self._lock = threading.Lock()
        self._reports = 0
        self._generation = 0
        self._stopped = threading.Event()

        cells: list[CellAgent[S]] = []
        for state in states:
            cell = CellAgent(
                self._sensor,
                transition,
                state,
                on_computed=self._report,
                pool=pool,
                workers=workers,
                idle_timeout=idle_timeout,
            )
            if cells:
                cell.left = cells[-1]
                cells[-1].right = cell
            cells.append(cell)
        self._cells = tuple(cells)
        self._sensor.add_listener(_FatalErrorListener(self))

    @classmethod
    def life(cls, pattern: str, size: int | None = None, **kwargs) -> LinearAutomaton:
        """A line running life_rule, seeded from a '*'/'-' pattern."""
        return cls(parse_pattern(pattern, size), life_rule, **kwargs)

    # ─── Accessors ───────────────────────────────────────────────────────

    @property
    def cells(self) -> tuple[CellAgent[S], ...]:
        return self._cells

    @property
    def sensor(self) -> Sensor:
        return self._sensor

    @property
    def generation(self) -> int:
        """Index of the last committed generation. 0 is the initial one."""
        return self._generation

    @property
    def pending_reports(self) -> int:
        """Cells that have reported in the current round (0 when idle)."""
        return self._reports

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def __len__(self) -> int:
        return len(self._cells)

    def states(self) -> tuple[S, ...]:
        return tuple(cell.state for cell in self._cells)

    def cell_state(self, index: int) -> S:
        return self._cells[index].state

    def set_cell_state(self, index: int, state: S) -> None:
        self._cells[index].state = state

    # ─── Lifecycle ───────────────────────────────────────────────────────

    def init(self) -> None:
        """Publish generation 0, set up every cell, then start the shared sensor.

        A line stopped before or during init() never starts ticking.
        """
        self._publish()
        if self.stopped:
            return
        for cell in self._cells:
            cell.init(init_sensors=False)
        if self.stopped:
            self._detach()
            return
        try:
            self._sensor.init()
        except SensorError as exc:
            raise AgentError("the automaton's tick sensor failed to start") from exc
        logger.info("Line automaton of %d cells started", len(self._cells))

    def stop(self) -> None:
        """Stop the tick. Computations already running may still report.

        Every cell stops listening to the sensor, so a sensor without a
        stop() of its own (a ManualSensor) cannot start another round either.
        """
        if self._stopped.is_set():
            return
        self._stopped.set()
        stop = getattr(self._sensor, "stop", None)
        if stop is not None:
            stop()
        self._detach()
        logger.info(
            "Line automaton stopped at generation %d (%d/%d reports pending)",
            self._generation, self._reports, len(self._cells),
        )

    def shutdown(self, wait: bool = True) -> None:
        """Stop and release every cell's worker pool."""
        self.stop()
        for cell in self._cells:
            cell.shutdown(wait=wait)

    def _detach(self) -> None:
        for cell in self._cells:
            cell.remove_sensor(self._sensor)

    # ─── Barrier ─────────────────────────────────────────────────────────

    def _report(self, cell: CellAgent[S]) -> None:
        with self._lock:
            self._reports += 1
            if self._reports < len(self._cells):
                return
            try:
                for c in self._cells:
                    c.commit()
                self._generation += 1
                logger.debug("Committed generation %d", self._generation)
                self._publish()
            finally:
                self._reports = 0

    def _publish(self) -> None:
        if self._on_commit is None:
            return
        try:
            self._on_commit(self._generation, self.states())
        except Exception:
            logger.exception("Commit hook failed for generation %d", self._generation)

    def _sensor_died(self, error: SensorError) -> None:
        self._stopped.set()
        if self._on_error is not None:
            self._on_error(error)
