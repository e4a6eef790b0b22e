import threading
from typing import Any, Callable, Dict, List, Optional

from typeracer.services.events import resolve_event
from typeracer.services.highscores.store import list_highscores, submit_score, top_score
from typeracer.texts import load_race_text
from .orchestrator import RaceOrchestrator, Scoreboard
from .scheduler import Scheduler, SerializedScheduler


class EventScoreboard(Scoreboard):
    """Scoreboard reading and writing an event's leaderboard in-process.

    Calls may come from background tasks, so each one pushes its own app
    context.
    """

    def __init__(self, app, event_id: str, limit: Optional[int] = None):
        self.app = app
        self.event_id = event_id
        self.limit = limit if limit is not None else int(app.config.get('HIGHSCORE_LIMIT', 10))

    def _event(self):
        event = resolve_event(self.event_id)
        if event is None:
            raise LookupError(f"event {self.event_id} no longer exists")
        return event

    def submit_score(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        with self.app.app_context():
            entry = submit_score(self._event(), payload)
            self.app.logger.info(
                f"[score-submit] event={self.event_id} name={entry.name} chars={entry.chars_typed} cps={entry.cps:.3f}"
            )
            return entry.to_dict()

    def fetch_highscores(self) -> List[Dict[str, Any]]:
        with self.app.app_context():
            return list_highscores(self._event(), limit=self.limit)

    def fetch_top(self) -> Optional[Dict[str, Any]]:
        with self.app.app_context():
            return top_score(self._event())


class RaceSession:
    """A single player's race bound to one socket connection.

    Socket input and scheduler callbacks share one re-entrant lock so the
    orchestrator sees events strictly one at a time.
    """

    def __init__(self, app, sid: str, name: str, event_id: str, scheduler: Scheduler,
                 send: Callable[[str, Dict[str, Any], str], None], email: Optional[str] = None):
        cfg = app.config
        self.app = app
        self.sid = sid
        self.event_id = event_id
        self.lock = threading.RLock()
        self.scheduler = SerializedScheduler(scheduler, self.lock)
        self._send = send
        self.scoreboard = EventScoreboard(app, event_id)
        self.ghost_pace = self._ghost_pace(cfg)
        self.orchestrator = RaceOrchestrator(
            load_race_text(cfg), name,
            scheduler=self.scheduler,
            email=email,
            scoreboard=self.scoreboard,
            duration_seconds=int(cfg.get('RACE_DURATION_SEC', 60)),
            ghost_pace=self.ghost_pace,
            emit=self._emit,
        )

    def _ghost_pace(self, cfg) -> Optional[float]:
        try:
            top = self.scoreboard.fetch_top()
        except LookupError:
            top = None
        if top and top.get('cps'):
            return float(top['cps'])
        return float(cfg.get('GHOST_DEFAULT_CPS', 0)) or None

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        self._send(f"race_{event}", payload, self.sid)
        if event == 'ended':
            self.app.logger.info(
                f"[race-end] sid={self.sid} event={self.event_id} chars={payload['charsTyped']} ms={payload['elapsedMs']} cps={payload['cps']:.3f}"
            )

    def describe(self) -> Dict[str, Any]:
        orch = self.orchestrator
        return {
            'eventId': self.event_id,
            'lines': list(orch.engine.text.lines),
            'totalChars': orch.total_chars,
            'durationSeconds': orch.duration_seconds,
            'ghostPace': self.ghost_pace,
            'state': orch.state.value,
        }

    def apply_input(self, value: str) -> Dict[str, Any]:
        with self.lock:
            result = self.orchestrator.apply_input(value)
            engine = self.orchestrator.engine
            return {
                'accepted': result.accepted,
                'value': result.value,
                'cursor': engine.cursor.to_dict(),
                'visibleLines': engine.visible_lines(),
                'feedback': [ok for _, ok in engine.word_feedback()],
                'progress': engine.progress,
            }

    def teardown(self) -> None:
        with self.lock:
            self.orchestrator.teardown()
