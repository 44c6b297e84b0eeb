"""Tests for reagent.textual: commit hooks bridged to a Textual app."""

import threading

import pytest
from textual.css.query import NoMatches

from reagent import Life, LinearAutomaton, ManualSensor, life_rule
from reagent import textual as rtx


class _MockApp:
    """Minimal mock matching the Textual App interface rtx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


class TestCommitHook:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        log = []
        hook = rtx.commit_hook(app, lambda g, s: log.append(g))
        hook(1, ())
        assert log == []

    def test_holds_newest_during_pause(self):
        app = _MockApp()
        log = []
        hook = rtx.commit_hook(app, lambda g, s: log.append(g))
        with rtx.pause(app):
            hook(1, ())
            hook(2, ())
            assert log == []
        assert log == [2]
        hook(3, ())
        assert log == [2, 3]

    def test_nested_pause_resumes_at_outermost(self):
        app = _MockApp()
        log = []
        hook = rtx.commit_hook(app, lambda g, s: log.append(g))
        with rtx.pause(app):
            with rtx.pause(app):
                hook(1, ())
            assert log == []
            assert rtx.is_paused(app)
        assert log == [1]
        assert not rtx.is_paused(app)

    def test_stale_generation_is_dropped(self):
        app = _MockApp()
        log = []
        hook = rtx.commit_hook(app, lambda g, s: log.append(g))
        hook(2, ())
        hook(1, ())
        assert log == [2]

    def test_held_commit_is_marshaled(self):
        """A commit held from a worker thread is replayed on the pausing thread."""
        app = _MockApp()
        log = []
        hook = rtx.commit_hook(app, lambda g, s: log.append(g))
        with rtx.pause(app):
            t = threading.Thread(target=hook, args=(4, ()))
            t.start()
            t.join(timeout=2)
        assert log == [4]
        assert app._call_from_thread_log == []

    def test_same_thread_is_direct(self):
        app = _MockApp()
        log = []
        hook = rtx.commit_hook(app, lambda g, s: log.append((g, s)))
        hook(3, ("x",))
        assert log == [(3, ("x",))]
        assert app._call_from_thread_log == []

    def test_worker_thread_is_marshaled(self):
        app = _MockApp()
        log = []
        hook = rtx.commit_hook(app, lambda g, s: log.append(g))
        t = threading.Thread(target=hook, args=(5, ()))
        t.start()
        t.join(timeout=2)
        assert log == [5]
        assert len(app._call_from_thread_log) == 1

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()

        def render(generation, states):
            raise NoMatches("LineView")

        rtx.commit_hook(app, render)(1, ())  # should not raise

    def test_propagates_real_errors(self):
        app = _MockApp()

        def render(generation, states):
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            rtx.commit_hook(app, render)(1, ())

    def test_drives_from_automaton(self):
        app = _MockApp()
        rows = []
        done = threading.Event()

        def render(generation, states):
            rows.append(states)
            if generation == 1:
                done.set()

        sensor = ManualSensor()
        line = LinearAutomaton(
            [Life.ALIVE, Life.DEAD, Life.ALIVE],
            life_rule,
            sensor=sensor,
            on_commit=rtx.commit_hook(app, render),
        )
        line.init()
        sensor.emit(1)
        assert done.wait(timeout=2)
        assert rows[-1] == (Life.DEAD, Life.ALIVE, Life.DEAD)
        # Generation 0 ran on this thread, generation 1 on a cell's worker.
        assert len(app._call_from_thread_log) == 1
        line.shutdown()


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert rtx.is_safe(app)

        with pytest.raises(RuntimeError):
            with rtx.pause(app):
                assert not rtx.is_safe(app)
                raise RuntimeError("oops")

        assert rtx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with rtx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with rtx.pause(app_a):
            assert not rtx.is_safe(app_a)
            assert rtx.is_safe(app_b)
