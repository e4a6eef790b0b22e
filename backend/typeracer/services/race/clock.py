from enum import Enum
from typing import Callable, Optional

from .scheduler import Scheduler
from .states import TransitionGuard

DEFAULT_DURATION_SEC = 60
LOW_BEEP_HZ = 440
HIGH_BEEP_HZ = 880  # one octave above the warning beeps
WARNING_SECONDS = (3, 2, 1)


class ClockState(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    ENDED = 'ended'
    CANCELLED = 'cancelled'


_CLOCK_TRANSITIONS = {
    ClockState.IDLE: (ClockState.RUNNING, ClockState.CANCELLED),
    ClockState.RUNNING: (ClockState.ENDED, ClockState.CANCELLED),
}


class RaceClock:
    """One-shot countdown: ticks every second, beeps at the end, then stops.

    ``start`` is latched; a clock runs at most once in its lifetime.
    """

    def __init__(self, scheduler: Scheduler,
                 on_tick: Optional[Callable[[int], None]] = None,
                 on_beep: Optional[Callable[[int], None]] = None,
                 on_end: Optional[Callable[[], None]] = None):
        self.scheduler = scheduler
        self.on_tick = on_tick
        self.on_beep = on_beep
        self.on_end = on_end
        self.guard = TransitionGuard(ClockState.IDLE, _CLOCK_TRANSITIONS)
        self.duration = DEFAULT_DURATION_SEC
        self.remaining = DEFAULT_DURATION_SEC
        self._interval = None

    @property
    def state(self) -> ClockState:
        return self.guard.state

    @property
    def elapsed(self) -> int:
        """Whole seconds elapsed according to the ticks seen so far."""
        return self.duration - self.remaining

    def start(self, duration_seconds: int = DEFAULT_DURATION_SEC) -> bool:
        if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int) or duration_seconds < 1:
            raise ValueError('duration_seconds must be a positive integer')
        if not self.guard.advance(ClockState.RUNNING):
            return False
        self.duration = duration_seconds
        self.remaining = duration_seconds
        self._emit_tick()
        self._interval = self.scheduler.start_interval(self._on_interval, 1.0)
        return True

    def cancel(self) -> None:
        self._clear_interval()
        self.guard.advance(ClockState.CANCELLED)

    def _on_interval(self) -> None:
        if self.state != ClockState.RUNNING:
            return
        self.remaining -= 1
        self._emit_tick()
        if self.remaining in WARNING_SECONDS:
            self._emit_beep(LOW_BEEP_HZ)
        if self.remaining <= 0:
            self._emit_beep(HIGH_BEEP_HZ)
            self._clear_interval()
            if self.guard.advance(ClockState.ENDED) and self.on_end:
                self.on_end()

    def _clear_interval(self) -> None:
        if self._interval is not None:
            self.scheduler.cancel_interval(self._interval)
            self._interval = None

    def _emit_tick(self) -> None:
        if self.on_tick:
            self.on_tick(self.remaining)

    def _emit_beep(self, frequency_hz: int) -> None:
        if self.on_beep:
            self.on_beep(frequency_hz)
