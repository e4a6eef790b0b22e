"""One race from first keystroke to placement.

The orchestrator wires a :class:`TypingEngine`, a :class:`RaceClock` and a
:class:`GhostProjector` together and reports everything through a single
``emit(event, payload)`` callable, in the order the pieces produced it:

- ``started`` ``{startedAt}`` on the first counted keystroke
- ``progress`` ``{ratio, lead}`` after every counted keystroke
- ``tick`` ``{secondsLeft}`` / ``beep`` ``{freq}`` from the clock
- ``ghost`` ``{elapsed, position, lead}`` per frame while the race runs
- ``ended`` ``{charsTyped, elapsedMs, cps, ...}`` when the text is done or time is up
- ``placement`` ``{placement, highscores}`` once the score was submitted

Score submission and the leaderboard fetch run through ``scheduler.spawn``
and never hold up ``ended`` or input. Only the final hand-back goes through
``scheduler.run_locked``; a race torn down by then publishes nothing.
Failures there are logged; the race result stands and the placement
becomes None.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from typeracer.services.highscores.ranking import compute_placement
from .clock import DEFAULT_DURATION_SEC, RaceClock
from .ghost import GhostProjector, round_half_up
from .scheduler import Scheduler
from .states import TransitionGuard
from .typing_engine import InputResult, TypingEngine

logger = logging.getLogger(__name__)

MIN_SCORING_SECONDS = 0.1


class RaceState(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    ENDED = 'ended'


_RACE_TRANSITIONS = {
    RaceState.IDLE: (RaceState.RUNNING,),
    RaceState.RUNNING: (RaceState.ENDED,),
}


@dataclass(frozen=True)
class RaceResult:
    chars_typed: int
    elapsed_ms: int
    cps: float

    @classmethod
    def from_counts(cls, chars_typed: int, elapsed_ms: int) -> 'RaceResult':
        return cls(chars_typed, elapsed_ms, chars_typed / max(MIN_SCORING_SECONDS, elapsed_ms / 1000))

    def to_dict(self):
        return {'charsTyped': self.chars_typed, 'elapsedMs': self.elapsed_ms, 'cps': self.cps}


class Scoreboard:
    """Where finished races are reported; implemented by the app's leaderboard client."""

    def submit_score(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def fetch_highscores(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def fetch_top(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError


class RaceOrchestrator:
    def __init__(self, text: str, name: str, scheduler: Scheduler, email: Optional[str] = None,
                 scoreboard: Optional[Scoreboard] = None, duration_seconds: int = DEFAULT_DURATION_SEC,
                 ghost_pace: Optional[float] = None,
                 emit: Optional[Callable[[str, Dict[str, Any]], None]] = None):
        self.name = name
        self.email = email
        self.scheduler = scheduler
        self.scoreboard = scoreboard
        self.duration_seconds = duration_seconds
        self._emit_cb = emit
        self.guard = TransitionGuard(RaceState.IDLE, _RACE_TRANSITIONS)
        self.alive = True

        self.progress = 0.0
        self.started_at: Optional[float] = None
        self.seconds_left = duration_seconds
        self.result: Optional[RaceResult] = None
        self.placement: Optional[int] = None
        self.highscores: List[Dict[str, Any]] = []

        self.engine = TypingEngine(text, on_progress=self._handle_progress, on_complete=self._handle_complete)
        self.total_chars = self.engine.text.total_chars
        self.clock = RaceClock(scheduler, on_tick=self._handle_tick, on_beep=self._handle_beep,
                               on_end=self._handle_clock_end)
        self.ghost = GhostProjector(scheduler, self.total_chars, pace_cps=ghost_pace,
                                    duration_seconds=duration_seconds, on_update=self._handle_ghost)

    @property
    def state(self) -> RaceState:
        return self.guard.state

    @property
    def coarse_elapsed(self) -> int:
        return self.duration_seconds - self.seconds_left

    def apply_input(self, value: str) -> InputResult:
        if self.state == RaceState.ENDED or not self.alive:
            return InputResult(False, self.engine.value)
        return self.engine.apply_input_value(value)

    def teardown(self) -> None:
        """Stop timers and ignore any work still in flight."""
        self.alive = False
        self.clock.cancel()
        self.ghost.teardown()

    # -- typing engine -------------------------------------------------------

    def _handle_progress(self, ratio: float) -> None:
        self.progress = ratio
        starting = ratio > 0 and self.guard.advance(RaceState.RUNNING)
        if starting:
            if self.started_at is None:
                self.started_at = self.scheduler.now()
            self._emit('started', {'startedAt': self.started_at})
        self._emit('progress', {'ratio': ratio, 'lead': self.ghost.lead(ratio)})
        if starting:
            self.clock.start(self.duration_seconds)
            self.ghost.start(self.started_at)

    def _handle_complete(self) -> None:
        self.finish(ratio=1.0)

    # -- clock / ghost -------------------------------------------------------

    def _handle_tick(self, seconds_left: int) -> None:
        if self.state == RaceState.ENDED:
            return
        self.seconds_left = seconds_left
        self._emit('tick', {'secondsLeft': seconds_left})

    def _handle_beep(self, frequency_hz: int) -> None:
        self._emit('beep', {'freq': frequency_hz})

    def _handle_clock_end(self) -> None:
        self.finish()

    def _handle_ghost(self, elapsed: float, position: float) -> None:
        self._emit('ghost', {'elapsed': elapsed, 'position': position, 'lead': self.ghost.lead(self.progress)})

    # -- end of race ---------------------------------------------------------

    def finish(self, ratio: Optional[float] = None) -> Optional[RaceResult]:
        """Close the race once; later calls return None."""
        if not self.guard.advance(RaceState.ENDED):
            return None
        if ratio is not None:
            self.progress = ratio
        now = self.scheduler.now()
        chars_typed = max(0, round_half_up(self.progress * self.total_chars))
        if self.started_at is not None:
            elapsed_ms = int(round((now - self.started_at) * 1000))
        else:
            elapsed_ms = self.coarse_elapsed * 1000
        self.result = RaceResult.from_counts(chars_typed, elapsed_ms)

        self.clock.cancel()
        self.ghost.freeze(self.coarse_elapsed)
        payload = self.result.to_dict()
        payload.update({'name': self.name, 'progress': self.progress})
        self._emit('ended', payload)
        if self.scoreboard is not None:
            self.scheduler.spawn(self._submit_and_rank, self.result)
        return self.result

    def _submit_and_rank(self, result: RaceResult) -> None:
        payload = {'name': self.name, 'charsTyped': result.chars_typed, 'durationMs': max(1, result.elapsed_ms)}
        if self.email:
            payload['email'] = self.email
        try:
            self.scoreboard.submit_score(payload)
        except Exception:
            logger.warning("[race-submit] score for %s was not stored", self.name, exc_info=True)

        placement = None
        highscores: List[Dict[str, Any]] = []
        try:
            highscores = list(self.scoreboard.fetch_highscores())
        except Exception:
            logger.warning("[race-placement] leaderboard unavailable for %s", self.name, exc_info=True)
        else:
            placement = compute_placement(highscores, self.name, result.cps, candidate={
                'id': 'local',
                'name': self.name,
                'cps': result.cps,
                'charsTyped': result.chars_typed,
                'durationSeconds': max(1, round_half_up(result.elapsed_ms / 1000)),
                'durationMs': result.elapsed_ms,
                'timestamp': '',
            })

        self.scheduler.run_locked(self._publish_placement, placement, highscores)

    def _publish_placement(self, placement: Optional[int], highscores: List[Dict[str, Any]]) -> None:
        if not self.alive:
            return
        self.placement = placement
        self.highscores = highscores
        self._emit('placement', {'placement': placement, 'highscores': highscores})

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        if self._emit_cb is not None and self.alive:
            self._emit_cb(event, payload)
