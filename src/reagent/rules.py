"""The linear game of life and its text patterns."""

from __future__ import annotations

import enum
from typing import Iterable

from reagent.cell import ABSENT


class Life(enum.Enum):
    ALIVE = "*"
    DEAD = "-"


def life_rule(left, cell: Life, right) -> Life:
    """Next state of one cell. Missing neighbours count as DEAD.

    A live cell survives only if its neighbours differ; a dead cell is born
    if either neighbour is alive.
    """
    if left is ABSENT:
        left = Life.DEAD
    if right is ABSENT:
        right = Life.DEAD
    if cell is Life.ALIVE:
        return Life.DEAD if left is right else Life.ALIVE
    if left is Life.ALIVE or right is Life.ALIVE:
        return Life.ALIVE
    return Life.DEAD


def parse_pattern(pattern: str, size: int | None = None) -> list[Life]:
    """Read a '*'/'-' pattern. Positions past the end of the text are DEAD.

    Any character other than '-' counts as alive.
    """
    if size is None:
        size = len(pattern)
    if size < 1:
        raise ValueError("a pattern needs at least one cell")
    return [
        Life.DEAD if i >= len(pattern) or pattern[i] == Life.DEAD.value else Life.ALIVE
        for i in range(size)
    ]


def format_states(states: Iterable[Life]) -> str:
    return "".join(state.value for state in states)
