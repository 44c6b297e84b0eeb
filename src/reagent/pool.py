"""Worker pools for agents.

Three disciplines, picked once when the agent is built:

- ``"cached"``: unbounded. A task goes to an idle thread if there is one,
  otherwise a new thread is started. Threads idle for ``idle_timeout``
  seconds exit.
- ``"fixed"``: ``workers`` threads; extra tasks wait in a queue.
- ``"single"``: one thread; tasks run one at a time in submission order.

All three are concurrent.futures Executors, so agents only ever see Futures.
"""

from __future__ import annotations

import itertools
import queue
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor

CACHED = "cached"
FIXED = "fixed"
SINGLE = "single"

POOLS = (CACHED, FIXED, SINGLE)

DEFAULT_IDLE_TIMEOUT = 60.0

_pool_counter = itertools.count(1)


class _WorkItem:
    __slots__ = ("future", "fn", "args", "kwargs")

    def __init__(self, future: Future, fn, args, kwargs) -> None:
        self.future = future
        self.fn = fn
        self.args = args
        self.kwargs = kwargs

    def run(self) -> None:
        if not self.future.set_running_or_notify_cancel():
            return
        try:
            result = self.fn(*self.args, **self.kwargs)
        except BaseException as exc:
            self.future.set_exception(exc)
        else:
            self.future.set_result(result)


class CachedThreadPool(Executor):
    """Unbounded pool that reuses idle threads and retires them after a timeout.

    Bookkeeping invariant (under _lock): ``_idle`` equals the number of
    workers waiting for work minus the items already handed to them.
    """

    def __init__(self, idle_timeout: float = DEFAULT_IDLE_TIMEOUT, thread_name_prefix: str = "") -> None:
        if idle_timeout <= 0:
            raise ValueError(f"idle_timeout must be positive, got {idle_timeout!r}")
        self._idle_timeout = idle_timeout
        self._prefix = thread_name_prefix or f"reagent-cached-{next(_pool_counter)}"
        self._queue: queue.SimpleQueue[_WorkItem | None] = queue.SimpleQueue()
        self._lock = threading.Lock()
        self._idle = 0
        self._threads: set[threading.Thread] = set()
        self._thread_counter = itertools.count(1)
        self._shutdown = False

    @property
    def thread_count(self) -> int:
        """Live worker threads, busy or idle."""
        with self._lock:
            return len(self._threads)

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future: Future = Future()
        item = _WorkItem(future, fn, args, kwargs)
        with self._lock:
            if self._shutdown:
                raise RuntimeError("cannot schedule new tasks after shutdown")
            if self._idle > 0:
                self._idle -= 1
                self._queue.put(item)
                return future
            thread = threading.Thread(
                target=self._worker,
                args=(item,),
                name=f"{self._prefix}-{next(self._thread_counter)}",
                daemon=True,
            )
            self._threads.add(thread)
        thread.start()
        return future

    def _worker(self, item: _WorkItem | None) -> None:
        try:
            while item is not None:
                item.run()
                del item
                with self._lock:
                    if self._shutdown:
                        return
                    self._idle += 1
                try:
                    item = self._queue.get(timeout=self._idle_timeout)
                except queue.Empty:
                    with self._lock:
                        # A submitter may have handed us work just as we timed out.
                        try:
                            item = self._queue.get_nowait()
                        except queue.Empty:
                            self._idle -= 1
                            return
        finally:
            with self._lock:
                self._threads.discard(threading.current_thread())

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        with self._lock:
            self._shutdown = True
            for _ in range(self._idle):
                self._queue.put(None)
            self._idle = 0
            threads = list(self._threads)
        if wait:
            current = threading.current_thread()
            for thread in threads:
                if thread is not current:
                    thread.join()


def make_pool(
    pool: str = CACHED,
    workers: int | None = None,
    *,
    idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
    name: str = "",
) -> Executor:
    """Build the executor for one pool discipline."""
    if pool == CACHED:
        if workers is not None:
            raise ValueError("a cached pool is unbounded; do not pass workers")
        return CachedThreadPool(idle_timeout, thread_name_prefix=name)
    if pool == FIXED:
        if workers is None or workers < 1:
            raise ValueError(f"a fixed pool needs at least one worker, got {workers!r}")
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix=name)
    if pool == SINGLE:
        if workers not in (None, 1):
            raise ValueError(f"a single-threaded pool has exactly one worker, got {workers!r}")
        return ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
    raise ValueError(f"unknown pool discipline {pool!r}; expected one of {POOLS}")
