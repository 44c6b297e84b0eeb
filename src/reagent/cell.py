"""Cell agents: one unit of a line automaton.

A CellAgent reacts to the shared tick by computing its next state from its
own committed state and the committed states of its two neighbours. The
result is parked in ``pending`` and only becomes visible when the owning
automaton calls commit(), after every cell in the line has computed.

Neighbours are weak references: the automaton owns the line, cells only
look each other up.
"""

from __future__ import annotations

import weakref
from typing import Callable, Generic, TypeVar

from reagent import pool as _pool
from reagent.agent import Agent
from reagent.sensor import Notification, Sensor

S = TypeVar("S")


class _Absent:
    """Marks a missing neighbour or an empty pending slot."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()

Transition = Callable[[object, S, object], S]


class CellAgent(Agent, Generic[S]):
    """An agent holding one cell state and computing its successor on each tick."""

    def __init__(
        self,
        sensor: Sensor,
        transition: Transition,
        state: S,
        *,
        on_computed: Callable[[CellAgent[S]], None] | None = None,
        pool: str = _pool.CACHED,
        workers: int | None = None,
        idle_timeout: float = _pool.DEFAULT_IDLE_TIMEOUT,
    ) -> None:
        super().__init__(pool, workers, idle_timeout=idle_timeout)
        self._sensor = sensor
        self._transition = transition
        self._state = state
        self._pending: object = ABSENT
        self._on_computed = on_computed
        self._left: weakref.ref[CellAgent[S]] | None = None
        self._right: weakref.ref[CellAgent[S]] | None = None

    @property
    def state(self) -> S:
        """The committed state. The only state neighbours ever read."""
        return self._state

    @state.setter
    def state(self, value: S) -> None:
        self._state = value

    @property
    def pending(self) -> S | object:
        """Next state computed this round, or ABSENT."""
        return self._pending

    @property
    def left(self) -> CellAgent[S] | None:
        return self._left() if self._left is not None else None

    @left.setter
    def left(self, cell: CellAgent[S] | None) -> None:
        self._left = weakref.ref(cell) if cell is not None else None

    @property
    def right(self) -> CellAgent[S] | None:
        return self._right() if self._right is not None else None

    @right.setter
    def right(self, cell: CellAgent[S] | None) -> None:
        self._right = weakref.ref(cell) if cell is not None else None

    def setup(self) -> None:
        self.bind(self._compute, self._sensor)

    def _compute(self, notification: Notification) -> None:
        left, right = self.left, self.right
        self._pending = self._transition(
            left.state if left is not None else ABSENT,
            self._state,
            right.state if right is not None else ABSENT,
        )
        if self._on_computed is not None:
            self._on_computed(self)

    def commit(self) -> None:
        """Promote pending to state. Only the owning automaton calls this."""
        if self._pending is not ABSENT:
            self._state = self._pending
            self._pending = ABSENT

    def __repr__(self) -> str:
        return f"CellAgent(state={self._state!r}, pending={self._pending!r})"
