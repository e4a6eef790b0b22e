import os
import sys
import pytest

# Ensure the backend root (containing the `typeracer` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from typeracer import create_app, db, socketio
from typeracer.services.race.scheduler import ManualScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RACE_DURATION_SEC = 60
    GHOST_DEFAULT_CPS = 3.5
    GHOST_FRAME_INTERVAL_MS = 50
    HIGHSCORE_LIMIT = 10
    RACE_TEXT_PATH = None
    DEFAULT_EVENT_ID = 'default'
    # Race clocks only move when a test advances them
    RACE_SCHEDULER = 'manual'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import typeracer.models  # noqa: F401
        from typeracer.services.events import ensure_default_event
        db.create_all()
        ensure_default_event()
        yield application
        from typeracer import socketio_events
        for sid in list(socketio_events._race_sessions):
            socketio_events._end_race(sid)
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def race_text(flask_app, tmp_path):
    """Short two-line race text for socket races."""
    path = tmp_path / 'race.txt'
    path.write_text('ab cd\nef', encoding='utf-8')
    flask_app.config['RACE_TEXT_PATH'] = str(path)
    return 'ab cd\nef'


@pytest.fixture()
def scheduler():
    return ManualScheduler(start=1000.0)


class RecordingScoreboard:
    """In-memory scoreboard used by orchestrator tests."""

    def __init__(self, highscores=None, fail_submit=False, fail_fetch=False):
        self.submitted = []
        self.highscores = list(highscores or [])
        self.fail_submit = fail_submit
        self.fail_fetch = fail_fetch

    def submit_score(self, payload):
        if self.fail_submit:
            raise ConnectionError('submit failed')
        self.submitted.append(payload)
        cps = payload['charsTyped'] / (payload['durationMs'] / 1000)
        entry = dict(payload, cps=cps, timestamp='2026-01-01T00:00:00.000Z')
        self.highscores.append(entry)
        return entry

    def fetch_highscores(self):
        if self.fail_fetch:
            raise ConnectionError('fetch failed')
        return sorted(self.highscores, key=lambda e: -e['cps'])

    def fetch_top(self):
        ranked = self.fetch_highscores()
        return ranked[0] if ranked else None


@pytest.fixture()
def recording_scoreboard():
    return RecordingScoreboard
