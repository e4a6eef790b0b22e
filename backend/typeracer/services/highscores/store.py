from typing import List, Optional

from typeracer import db
from typeracer.models import Event, ScoreEntry
from typeracer.services.validation import (
    PayloadError, as_int, as_number, optional_string, require_object, require_string,
)
from .ranking import DEFAULT_LIMIT, rank_highscores, sort_scores


def parse_score_payload(data) -> dict:
    """Validate a score submission and derive its duration in milliseconds.

    Either ``durationMs`` or ``durationSeconds`` must be present; when both
    are, milliseconds win.
    """
    data = require_object(data)
    errors: List[str] = []
    name = require_string(data, 'name', errors)
    email = optional_string(data, 'email', errors)

    chars_typed = as_int(data.get('charsTyped'))
    if chars_typed is None or chars_typed < 0:
        errors.append('charsTyped must be a non-negative integer')

    duration_ms = None
    if data.get('durationMs') is not None:
        duration_ms = as_int(data.get('durationMs'))
        if duration_ms is None or duration_ms <= 0:
            errors.append('durationMs must be a positive integer')
            duration_ms = None
    duration_seconds = None
    if data.get('durationSeconds') is not None:
        duration_seconds = as_int(data.get('durationSeconds'))
        if duration_seconds is None or duration_seconds <= 0:
            errors.append('durationSeconds must be a positive integer')
            duration_seconds = None
    if data.get('durationMs') is None and data.get('durationSeconds') is None:
        errors.append('Either durationMs or durationSeconds must be provided')

    accuracy = None
    if data.get('accuracy') is not None:
        accuracy = as_number(data.get('accuracy'))
        if accuracy is None or not 0 <= accuracy <= 1:
            errors.append('accuracy must be a number between 0 and 1')

    if errors:
        raise PayloadError(errors)

    if duration_ms is None:
        duration_ms = duration_seconds * 1000
    return {
        'name': name,
        'email': email or None,
        'chars_typed': chars_typed,
        'duration_ms': duration_ms,
        'accuracy': accuracy,
    }


def submit_score(event: Event, data) -> ScoreEntry:
    """Persist a score; cps is derived here from the raw counts only."""
    fields = parse_score_payload(data)
    duration_ms = fields['duration_ms']
    entry = ScoreEntry(
        event_id=event.id,
        name=fields['name'],
        email=fields['email'],
        chars_typed=fields['chars_typed'],
        duration_ms=duration_ms,
        duration_seconds=max(1, int(duration_ms / 1000 + 0.5)),
        accuracy=fields['accuracy'],
        cps=fields['chars_typed'] / (duration_ms / 1000),
    )
    db.session.add(entry)
    db.session.commit()
    return entry


def _event_scores(event: Event) -> List[dict]:
    rows = ScoreEntry.query.filter_by(event_id=event.id).order_by(ScoreEntry.timestamp).all()
    return [row.to_dict() for row in rows]


def list_highscores(event: Event, limit: Optional[int] = DEFAULT_LIMIT, unique_email: bool = False) -> List[dict]:
    return rank_highscores(_event_scores(event), limit=limit, unique_email=unique_email)


def top_score(event: Event) -> Optional[dict]:
    ranked = sort_scores(_event_scores(event))
    return ranked[0] if ranked else None


def clear_highscores(event: Event) -> int:
    removed = ScoreEntry.query.filter_by(event_id=event.id).delete()
    db.session.commit()
    return removed
