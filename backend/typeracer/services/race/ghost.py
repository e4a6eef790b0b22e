import math
from typing import Callable, Optional

from .scheduler import Scheduler


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def project_ghost(pace_cps: float, elapsed_seconds: float, total_chars: int) -> float:
    """Fraction of the text a racer at ``pace_cps`` has covered after ``elapsed_seconds``."""
    return clamp(pace_cps * elapsed_seconds / max(1, total_chars))


def ahead_behind(player_ratio: float, ghost_ratio: float, total_chars: int) -> int:
    """Signed lead over the ghost in characters (negative means behind)."""
    return round_half_up((player_ratio - ghost_ratio) * total_chars)


class GhostProjector:
    """Reference racer moving at a constant pace.

    While running the position is recomputed on every scheduler frame so it
    advances smoothly between clock ticks; ``freeze`` pins it to a coarse
    elapsed value (before the start and after the end). Without a pace there
    is no ghost and ``position`` stays None.
    """

    def __init__(self, scheduler: Scheduler, total_chars: int, pace_cps: Optional[float] = None,
                 duration_seconds: float = 60, on_update: Optional[Callable[[float, float], None]] = None):
        self.scheduler = scheduler
        self.total_chars = total_chars
        self.pace_cps = pace_cps if pace_cps and pace_cps > 0 else None
        self.duration_seconds = duration_seconds
        self.on_update = on_update
        self.elapsed = 0.0
        self.started_at: Optional[float] = None
        self._frame = None

    @property
    def enabled(self) -> bool:
        return self.pace_cps is not None

    @property
    def running(self) -> bool:
        return self._frame is not None

    @property
    def position(self) -> Optional[float]:
        if not self.enabled:
            return None
        return project_ghost(self.pace_cps, self.elapsed, self.total_chars)

    def lead(self, player_ratio: float) -> Optional[int]:
        position = self.position
        if position is None:
            return None
        return ahead_behind(clamp(player_ratio), position, self.total_chars)

    def start(self, started_at: float) -> None:
        if not self.enabled or self.running:
            return
        self.started_at = started_at
        self._frame = self.scheduler.request_frame(self._on_frame)

    def freeze(self, elapsed_seconds: float) -> None:
        self._cancel_frame()
        self._set_elapsed(elapsed_seconds)

    def teardown(self) -> None:
        self._cancel_frame()

    def _on_frame(self, now: float) -> None:
        if self._frame is None:
            return
        self._frame = self.scheduler.request_frame(self._on_frame)
        self._set_elapsed(now - self.started_at)

    def _set_elapsed(self, elapsed_seconds: float) -> None:
        self.elapsed = clamp(elapsed_seconds, 0.0, self.duration_seconds)
        if self.enabled and self.on_update:
            self.on_update(self.elapsed, self.position)

    def _cancel_frame(self) -> None:
        if self._frame is not None:
            self.scheduler.cancel_frame(self._frame)
            self._frame = None
