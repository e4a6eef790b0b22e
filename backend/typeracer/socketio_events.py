from typing import Dict

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from typeracer import socketio
from typeracer.services.events import ACTIVE_EVENT_ROOM, get_active_event, resolve_event
from typeracer.services.race.scheduler import BackgroundScheduler, ManualScheduler
from typeracer.services.race.session import RaceSession

_race_sessions: Dict[str, RaceSession] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _send_to_sid(event: str, payload, sid: str) -> None:
    # Use socketio.emit since this may be called from a background task
    socketio.emit(event, payload, to=sid, namespace='/ws')


def _make_scheduler(app):
    if app.config.get('RACE_SCHEDULER') == 'manual':
        return ManualScheduler()
    frame_ms = int(app.config.get('GHOST_FRAME_INTERVAL_MS', 50))
    return BackgroundScheduler(socketio.start_background_task, sleep=socketio.sleep,
                               frame_interval=max(1, frame_ms) / 1000.0)


def _end_race(sid: str) -> None:
    session = _race_sessions.pop(sid, None)
    if session is not None:
        session.teardown()


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    _end_race(_get_sid())


def handle_ping(data):
    emit('pong', data or {})


def handle_watch_active_event(data=None):
    join_room(ACTIVE_EVENT_ROOM)
    emit('active_event', get_active_event().to_dict())


def handle_unwatch_active_event(data=None):
    leave_room(ACTIVE_EVENT_ROOM)


def handle_race_join(data):
    data = data or {}
    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        emit('error', {'message': 'name is required'})
        return
    email = data.get('email') if isinstance(data.get('email'), str) else None
    event = resolve_event(data.get('eventId'))
    if event is None:
        emit('error', {'message': 'Event not found'})
        return

    sid = _get_sid()
    # Re-entering the race screen starts over
    _end_race(sid)
    app = current_app._get_current_object()
    session = RaceSession(app, sid, name.strip(), event.id, _make_scheduler(app), _send_to_sid,
                          email=email.strip() if email else None)
    _race_sessions[sid] = session
    try:
        app.logger.info(f"[race-join] sid={sid} event={event.id} name={name.strip()} ghost={session.ghost_pace}")
    except Exception:
        pass
    emit('race_joined', session.describe())


def handle_race_input(data):
    session = _race_sessions.get(_get_sid())
    if session is None:
        emit('error', {'message': 'No race in progress; join first'})
        return
    value = (data or {}).get('value')
    if not isinstance(value, str):
        emit('error', {'message': 'value must be a string'})
        return
    emit('race_input_ack', session.apply_input(value))


def handle_race_leave(data=None):
    _end_race(_get_sid())
    emit('race_left', {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = [
        ('connect', handle_connect),
        ('disconnect', handle_disconnect),
        ('ping', handle_ping),
        ('watch_active_event', handle_watch_active_event),
        ('unwatch_active_event', handle_unwatch_active_event),
        ('race_join', handle_race_join),
        ('race_input', handle_race_input),
        ('race_leave', handle_race_leave),
    ]
    for name, handler in handlers:
        socketio.on_event(name, handler, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        for name, handler in handlers:
            socketio.on_event(name, handler, namespace='/')
