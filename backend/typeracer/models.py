from datetime import datetime, timezone
import uuid

from typeracer import db


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    """Render a naive UTC datetime the way clients expect it (ISO-8601 with Z)."""
    if value is None:
        return None
    return value.isoformat(timespec='milliseconds') + 'Z'


class Event(db.Model):
    __tablename__ = 'event'
    id = db.Column(db.String(64), primary_key=True, default=generate_id)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    date = db.Column(db.String(32), nullable=True)
    active = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'date': self.date,
            'active': bool(self.active),
            'createdAt': isoformat(self.created_at),
        }


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.String(64), primary_key=True, default=generate_id)
    event_id = db.Column(db.String(64), db.ForeignKey('event.id'), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'createdAt': isoformat(self.created_at),
        }


class ScoreEntry(db.Model):
    __tablename__ = 'score_entry'
    id = db.Column(db.String(64), primary_key=True, default=generate_id)
    event_id = db.Column(db.String(64), db.ForeignKey('event.id'), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(256), nullable=True)
    chars_typed = db.Column(db.Integer, nullable=False)
    duration_seconds = db.Column(db.Integer, nullable=False)
    duration_ms = db.Column(db.Integer, nullable=False)
    accuracy = db.Column(db.Float, nullable=True)
    cps = db.Column(db.Float, nullable=False)
    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'cps': self.cps,
            'charsTyped': self.chars_typed,
            'durationSeconds': self.duration_seconds,
            'durationMs': self.duration_ms,
            'accuracy': self.accuracy,
            'timestamp': isoformat(self.timestamp),
        }
