"""Time sources for races.

The clock and the ghost never call ``time`` or start threads themselves:
they ask a scheduler for repeating callbacks and per-frame callbacks.
``BackgroundScheduler`` runs them as Socket.IO background tasks in the
server; ``ManualScheduler`` moves time only when told to.
"""
import itertools
import logging
import threading
import time
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_FRAME_INTERVAL = 1 / 60


class Scheduler:
    """Interface shared by the real and the simulated scheduler."""

    def now(self) -> float:
        """Wall-clock seconds."""
        raise NotImplementedError

    def start_interval(self, callback: Callable[[], None], interval: float):
        raise NotImplementedError

    def cancel_interval(self, handle) -> None:
        raise NotImplementedError

    def request_frame(self, callback: Callable[[float], None]):
        """Call ``callback(now)`` once, at the next frame."""
        raise NotImplementedError

    def cancel_frame(self, handle) -> None:
        raise NotImplementedError

    def spawn(self, fn: Callable, *args) -> None:
        """Run ``fn(*args)`` without blocking the caller."""
        raise NotImplementedError

    def run_locked(self, fn: Callable, *args):
        """Run ``fn(*args)`` in step with the scheduler's other callbacks.

        Spawned jobs use this to hand their result back; plain schedulers
        have nothing to serialize against.
        """
        return fn(*args)


class _TaskHandle:
    __slots__ = ('cancelled',)

    def __init__(self):
        self.cancelled = False


class BackgroundScheduler(Scheduler):
    """Scheduler backed by ``socketio.start_background_task``-style launchers.

    Each interval runs in its own task with a drift-free sleep loop.
    Frame requests share one frame loop that keeps running while callbacks
    are pending and exits once a frame finds none. Cancelling an interval
    only flips a flag, the task notices on its next wake-up.
    """

    def __init__(self, start_task: Callable, sleep: Callable[[float], None] = time.sleep,
                 frame_interval: float = DEFAULT_FRAME_INTERVAL, clock: Callable[[], float] = time.time):
        self._start_task = start_task
        self._sleep = sleep
        self._clock = clock
        self.frame_interval = frame_interval
        self._frame_ids = itertools.count(1)
        self._frames: Dict[int, Callable[[float], None]] = {}
        self._frames_lock = threading.Lock()
        self._frame_loop_running = False

    def now(self) -> float:
        return self._clock()

    def start_interval(self, callback, interval):
        handle = _TaskHandle()

        def _worker():
            due = self.now() + interval
            while True:
                self._sleep(max(0.0, due - self.now()))
                if handle.cancelled:
                    return
                try:
                    callback()
                except Exception:
                    logger.exception("[interval-error] callback raised; interval stopped")
                    return
                due += interval

        self._start_task(_worker)
        return handle

    def cancel_interval(self, handle) -> None:
        if handle is not None:
            handle.cancelled = True

    def request_frame(self, callback):
        with self._frames_lock:
            handle = next(self._frame_ids)
            self._frames[handle] = callback
            start_loop = not self._frame_loop_running
            self._frame_loop_running = True
        if start_loop:
            self._start_task(self._frame_loop)
        return handle

    def cancel_frame(self, handle) -> None:
        with self._frames_lock:
            self._frames.pop(handle, None)

    def _frame_loop(self) -> None:
        due = self.now() + self.frame_interval
        while True:
            self._sleep(max(0.0, due - self.now()))
            due += self.frame_interval
            with self._frames_lock:
                pending, self._frames = self._frames, {}
                if not pending:
                    self._frame_loop_running = False
                    return
            now = self.now()
            for callback in pending.values():
                try:
                    callback(now)
                except Exception:
                    logger.exception("[frame-error] frame callback raised")

    def spawn(self, fn, *args) -> None:
        self._start_task(fn, *args)


class ManualScheduler(Scheduler):
    """Deterministic scheduler: time only moves through ``advance``.

    Interval callbacks fire in due order while advancing; pending frame
    callbacks fire once at the end of each ``advance`` (frames requested
    from inside a frame wait for the next one). ``spawn`` runs inline.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._ids = itertools.count(1)
        self._intervals: Dict[int, List] = {}
        self._frames: Dict[int, Callable[[float], None]] = {}

    def now(self) -> float:
        return self._now

    def start_interval(self, callback, interval):
        handle = next(self._ids)
        self._intervals[handle] = [self._now + interval, interval, callback]
        return handle

    def cancel_interval(self, handle) -> None:
        self._intervals.pop(handle, None)

    def request_frame(self, callback):
        handle = next(self._ids)
        self._frames[handle] = callback
        return handle

    def cancel_frame(self, handle) -> None:
        self._frames.pop(handle, None)

    def spawn(self, fn, *args) -> None:
        fn(*args)

    @property
    def pending_intervals(self) -> int:
        return len(self._intervals)

    @property
    def pending_frames(self) -> int:
        return len(self._frames)

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while True:
            due = self._next_due(target)
            if due is None:
                break
            when, handle = due
            self._now = when
            entry = self._intervals[handle]
            entry[0] += entry[1]
            entry[2]()
        self._now = target
        self.run_frame()

    def run_frame(self) -> None:
        pending, self._frames = self._frames, {}
        for callback in pending.values():
            callback(self._now)

    def _next_due(self, target: float) -> Optional[tuple]:
        candidates = [(entry[0], handle) for handle, entry in self._intervals.items() if entry[0] <= target]
        return min(candidates) if candidates else None


class SerializedScheduler(Scheduler):
    """Wraps a scheduler so timer callbacks run under a shared lock.

    Spawned jobs are not wrapped: they may block on I/O and take the lock
    themselves through ``run_locked`` only to publish what they got.
    """

    def __init__(self, inner: Scheduler, lock):
        self.inner = inner
        self.lock = lock

    def _locked(self, fn):
        def _run(*args):
            with self.lock:
                return fn(*args)
        return _run

    def now(self):
        return self.inner.now()

    def start_interval(self, callback, interval):
        return self.inner.start_interval(self._locked(callback), interval)

    def cancel_interval(self, handle):
        self.inner.cancel_interval(handle)

    def request_frame(self, callback):
        return self.inner.request_frame(self._locked(callback))

    def cancel_frame(self, handle):
        self.inner.cancel_frame(handle)

    def spawn(self, fn, *args):
        self.inner.spawn(fn, *args)

    def run_locked(self, fn, *args):
        with self.lock:
            return fn(*args)
