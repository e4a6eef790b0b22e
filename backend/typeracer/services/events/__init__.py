"""Events scope players and highscores into isolated leaderboards.

Exactly one event is active at a time. The built-in default event always
exists so a fresh install has somewhere to put scores.
"""
from typing import List, Optional

from flask import current_app

from typeracer import db, socketio
from typeracer.models import Event, Player, ScoreEntry
from typeracer.services.validation import PayloadError, optional_string, require_object, require_string
from .broadcast import active_event_broadcaster

ACTIVE_EVENT_ROOM = 'events:active'


def _default_event_id() -> str:
    try:
        return current_app.config.get('DEFAULT_EVENT_ID', 'default')
    except RuntimeError:
        return 'default'


def ensure_default_event() -> Event:
    event = db.session.get(Event, _default_event_id())
    if event is None:
        event = Event(id=_default_event_id(), name='Default event', active=True)
        if Event.query.filter_by(active=True).first():
            event.active = False
        db.session.add(event)
        db.session.commit()
    return event


def get_active_event() -> Event:
    event = Event.query.filter_by(active=True).first()
    if event is not None:
        return event
    event = ensure_default_event()
    if not event.active:
        event.active = True
        db.session.add(event)
        db.session.commit()
    return event


def resolve_event(event_id: Optional[str]) -> Optional[Event]:
    """Look up an event by id; a missing id means the active event."""
    if not event_id:
        return get_active_event()
    if event_id == _default_event_id():
        return ensure_default_event()
    return db.session.get(Event, event_id)


def list_events() -> List[Event]:
    ensure_default_event()
    return Event.query.order_by(Event.created_at).all()


def create_event(data) -> Event:
    data = require_object(data)
    errors: List[str] = []
    name = require_string(data, 'name', errors)
    description = optional_string(data, 'description', errors)
    date = optional_string(data, 'date', errors)
    if errors:
        raise PayloadError(errors)
    event = Event(name=name, description=description or None, date=date or None, active=False)
    db.session.add(event)
    db.session.commit()
    return event


def update_event(event: Event, data) -> Event:
    data = require_object(data)
    errors: List[str] = []
    if 'name' in data:
        name = require_string(data, 'name', errors)
        if name:
            event.name = name
    if 'description' in data:
        event.description = optional_string(data, 'description', errors) or None
    if 'date' in data:
        event.date = optional_string(data, 'date', errors) or None
    if errors:
        db.session.rollback()
        raise PayloadError(errors)
    db.session.add(event)
    db.session.commit()
    return event


def activate_event(event: Event) -> Event:
    Event.query.filter(Event.id != event.id).update({'active': False})
    event.active = True
    db.session.add(event)
    db.session.commit()
    notify_active_event(event)
    return event


def can_delete_event(event: Event) -> bool:
    return event.id != _default_event_id() and not event.active


def delete_event(event: Event) -> None:
    ScoreEntry.query.filter_by(event_id=event.id).delete()
    Player.query.filter_by(event_id=event.id).delete()
    db.session.delete(event)
    db.session.commit()


def notify_active_event(event: Event) -> None:
    payload = event.to_dict()
    socketio.emit('active_event', payload, to=ACTIVE_EVENT_ROOM, namespace='/ws')
    listeners = active_event_broadcaster.publish(payload)
    try:
        current_app.logger.info(f"[event-activate] event={event.id} stream_listeners={listeners}")
    except Exception:
        pass
