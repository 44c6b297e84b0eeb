"""Tests for CellAgent: compute into pending, commit on demand."""

import gc
import threading

from reagent import ABSENT, CellAgent, ManualSensor


def _line(states, transition, **kwargs):
    sensor = ManualSensor()
    cells = [CellAgent(sensor, transition, s, pool="single", **kwargs) for s in states]
    for left, right in zip(cells, cells[1:]):
        left.right = right
        right.left = left
    for cell in cells:
        cell.init(init_sensors=False)
    return sensor, cells


def _drain(cells):
    for cell in cells:
        cell.shutdown(wait=True)


class TestAbsent:
    def test_singleton_and_falsy(self):
        assert type(ABSENT)() is ABSENT
        assert not ABSENT
        assert repr(ABSENT) == "ABSENT"


class TestCompute:
    def test_ends_see_absent(self):
        seen = []
        lock = threading.Lock()

        def transition(left, own, right):
            with lock:
                seen.append((left, own, right))
            return own

        sensor, cells = _line(["a", "b", "c"], transition)
        sensor.emit(None)
        _drain(cells)
        assert sorted(seen, key=lambda t: t[1]) == [
            (ABSENT, "a", "b"),
            ("a", "b", "c"),
            ("b", "c", ABSENT),
        ]

    def test_single_cell_has_no_neighbours(self):
        seen = []
        sensor, cells = _line([1], lambda l, o, r: seen.append((l, r)) or o)
        sensor.emit(None)
        _drain(cells)
        assert seen == [(ABSENT, ABSENT)]

    def test_result_waits_for_commit(self):
        sensor, cells = _line([1, 2], lambda l, o, r: o * 10)
        sensor.emit(None)
        _drain(cells)
        assert [c.state for c in cells] == [1, 2]
        assert [c.pending for c in cells] == [10, 20]
        for c in cells:
            c.commit()
        assert [c.state for c in cells] == [10, 20]
        assert all(c.pending is ABSENT for c in cells)

    def test_on_computed_reports_cell(self):
        reported = []
        sensor, cells = _line([0], lambda l, o, r: o + 1, on_computed=reported.append)
        sensor.emit(None)
        _drain(cells)
        assert reported == cells


class TestCommit:
    def test_commit_without_pending_keeps_state(self):
        cell = CellAgent(ManualSensor(), lambda l, o, r: o, "x")
        cell.commit()
        assert cell.state == "x"
        assert cell.pending is ABSENT

    def test_falsy_pending_is_committed(self):
        sensor, cells = _line([1], lambda l, o, r: 0)
        sensor.emit(None)
        _drain(cells)
        cells[0].commit()
        assert cells[0].state == 0


class TestNeighbours:
    def test_neighbours_are_weak(self):
        sensor = ManualSensor()
        a = CellAgent(sensor, lambda l, o, r: o, 0)
        b = CellAgent(sensor, lambda l, o, r: o, 1)
        a.right = b
        assert a.right is b
        del b
        gc.collect()
        assert a.right is None

    def test_clear_neighbour(self):
        sensor = ManualSensor()
        a = CellAgent(sensor, lambda l, o, r: o, 0)
        a.left = CellAgent(sensor, lambda l, o, r: o, 1)
        a.left = None
        assert a.left is None
