from typeracer.services.race.scheduler import BackgroundScheduler, ManualScheduler, SerializedScheduler


class _Tasks:
    """Records background tasks instead of starting them."""

    def __init__(self):
        self.started = []

    def __call__(self, fn, *args):
        self.started.append((fn, args))

    def run_all(self):
        pending, self.started = self.started, []
        for fn, args in pending:
            fn(*args)


def _background(tasks):
    return BackgroundScheduler(tasks, sleep=lambda seconds: None, frame_interval=0.05, clock=lambda: 100.0)


def test_frame_chain_shares_one_loop():
    tasks = _Tasks()
    sched = _background(tasks)
    seen = []

    def on_frame(now):
        seen.append(now)
        if len(seen) < 4:
            sched.request_frame(on_frame)

    sched.request_frame(on_frame)
    sched.request_frame(lambda now: seen.append('other'))
    assert len(tasks.started) == 1

    tasks.run_all()
    assert seen.count(100.0) == 4
    assert seen.count('other') == 1
    assert tasks.started == []

    # the loop exited once idle; the next request starts a new one
    sched.request_frame(on_frame)
    assert len(tasks.started) == 1


def test_cancelled_frame_never_runs():
    tasks = _Tasks()
    sched = _background(tasks)
    seen = []
    handle = sched.request_frame(seen.append)
    sched.cancel_frame(handle)
    tasks.run_all()
    assert seen == []


def test_frame_error_is_logged_and_loop_continues(caplog):
    tasks = _Tasks()
    sched = _background(tasks)
    seen = []

    def broken(now):
        raise RuntimeError('boom')

    sched.request_frame(broken)
    sched.request_frame(seen.append)
    tasks.run_all()
    assert seen == [100.0]
    assert '[frame-error]' in caplog.text


def test_interval_stops_when_cancelled():
    tasks = _Tasks()
    sched = _background(tasks)
    calls = []
    holder = {}

    def on_interval():
        calls.append(1)
        if len(calls) == 3:
            sched.cancel_interval(holder['handle'])

    holder['handle'] = sched.start_interval(on_interval, 1.0)
    tasks.run_all()
    assert len(calls) == 3


class _CountingLock:
    def __init__(self):
        self.entered = 0

    def __enter__(self):
        self.entered += 1

    def __exit__(self, *exc):
        return False


def test_serialized_scheduler_locks_timers_but_not_spawn():
    lock = _CountingLock()
    sched = SerializedScheduler(ManualScheduler(), lock)
    sched.start_interval(lambda: None, 1.0)
    sched.inner.advance(2)
    assert lock.entered == 2

    sched.spawn(lambda: None)
    assert lock.entered == 2

    assert sched.run_locked(lambda a, b: a + b, 2, 3) == 5
    assert lock.entered == 3
