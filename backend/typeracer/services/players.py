from typing import List

from typeracer import db
from typeracer.models import Event, Player, ScoreEntry
from typeracer.services.validation import PayloadError, require_object, require_string


class DuplicatePlayerError(Exception):
    pass


def _normalize(value: str) -> str:
    return (value or '').strip().lower()


def email_registered(event: Event, email: str) -> bool:
    wanted = _normalize(email)
    return any(_normalize(p.email) == wanted for p in Player.query.filter_by(event_id=event.id).all())


def register_player(event: Event, data) -> Player:
    data = require_object(data)
    errors: List[str] = []
    name = require_string(data, 'name', errors)
    email = require_string(data, 'email', errors)
    if errors:
        raise PayloadError(errors)
    if email_registered(event, email):
        raise DuplicatePlayerError(email)
    player = Player(event_id=event.id, name=name, email=email)
    db.session.add(player)
    db.session.commit()
    return player


def list_players(event: Event) -> List[Player]:
    return Player.query.filter_by(event_id=event.id).order_by(Player.created_at).all()


def name_available(event: Event, name: str) -> bool:
    """Case-insensitive check against registered players and submitted scores."""
    wanted = _normalize(name)
    if not wanted:
        return False
    if any(_normalize(p.name) == wanted for p in Player.query.filter_by(event_id=event.id).all()):
        return False
    return not any(_normalize(s.name) == wanted for s in ScoreEntry.query.filter_by(event_id=event.id).all())


def clear_players(event: Event) -> int:
    removed = Player.query.filter_by(event_id=event.id).delete()
    db.session.commit()
    return removed
