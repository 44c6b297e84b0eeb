"""Textual integration for reagent. Opt-in; requires textual.

Commit hooks fire on worker threads, inside the automaton's barrier. This
module turns a widget-updating function into a hook that is safe to hand
to LinearAutomaton(on_commit=...): it is marshaled to the app thread, it
tolerates widgets that are not mounted, and it holds back generations while
the app is paused.

Pause state is keyed by id(app) and guarded by _lock, since commits arrive
from any cell's worker. Pauses nest; the app resumes when the outermost one
exits. Only the newest generation committed during a pause is kept per
hook, and it is delivered on resume.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable

from textual.css.query import NoMatches

CommitFn = Callable[[int, tuple], None]

_lock = threading.Lock()
_pause_depth: dict[int, int] = {}
# id(app) -> {guarded hook: (generation, states)} held back while paused
_held: dict[int, dict[CommitFn, tuple[int, tuple]]] = {}


@contextmanager
def pause(app):
    """Hold back commits while widgets are being replaced."""
    key = id(app)
    with _lock:
        _pause_depth[key] = _pause_depth.get(key, 0) + 1
    try:
        yield
    finally:
        with _lock:
            depth = _pause_depth.pop(key) - 1
            if depth:
                _pause_depth[key] = depth
                held = {}
            else:
                held = _held.pop(key, {})
        for hook, (generation, states) in held.items():
            hook(generation, states)


def is_paused(app) -> bool:
    with _lock:
        return id(app) in _pause_depth


def is_safe(app) -> bool:
    """Can the widget tree take a render right now?"""
    return app.is_running and not is_paused(app)


def commit_hook(app, fn: CommitFn) -> CommitFn:
    """Wrap fn(generation, states) for use as an automaton commit hook.

    Skipped while the app is not running. While paused, the newest commit is
    held and delivered when the pause ends. Calls made off the app thread go
    through app.call_from_thread. NoMatches raised by widget queries is
    swallowed; anything else propagates.
    """
    _main = threading.get_ident()
    key = id(app)
    delivered = [-1]

    def _guarded(generation: int, states: tuple) -> None:
        if not app.is_running:
            return
        with _lock:
            if key in _pause_depth:
                _held.setdefault(key, {})[_guarded] = (generation, states)
                return
            # A replayed commit may lose the race with a newer one.
            if generation <= delivered[0]:
                return
            delivered[0] = generation
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, generation, states)
        else:
            _safe(generation, states)

    def _safe(generation: int, states: tuple) -> None:
        try:
            fn(generation, states)
        except NoMatches:
            pass

    return _guarded
