import math

from flask import Blueprint, current_app, jsonify, request

from typeracer.services.events import resolve_event
from typeracer.services.highscores.store import clear_highscores, list_highscores, submit_score, top_score
from typeracer.services.validation import PayloadError

highscores = Blueprint('highscores', __name__)


def _parse_limit(raw, default: int) -> int:
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if not math.isfinite(value):
        return default
    return int(value)


@highscores.route('/scores', methods=['POST'])
def post_score():
    event = resolve_event(request.args.get('eventId'))
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    try:
        entry = submit_score(event, request.get_json(silent=True))
    except PayloadError as exc:
        current_app.logger.info(f"[score-reject] event={event.id} details={exc.details}")
        return jsonify(exc.to_dict()), 400
    current_app.logger.info(
        f"[score-submit] event={event.id} name={entry.name} chars={entry.chars_typed} ms={entry.duration_ms} cps={entry.cps:.3f}"
    )
    return jsonify(entry.to_dict()), 201


@highscores.route('/highscores', methods=['GET'])
def get_highscores():
    event = resolve_event(request.args.get('eventId'))
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    limit = _parse_limit(request.args.get('limit'), int(current_app.config.get('HIGHSCORE_LIMIT', 10)))
    unique_email = request.args.get('uniqueEmail') in ('1', 'true')
    return jsonify(list_highscores(event, limit=limit, unique_email=unique_email))


@highscores.route('/highscores/top', methods=['GET'])
def get_top():
    event = resolve_event(request.args.get('eventId'))
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    best = top_score(event)
    if best is None:
        return jsonify({'error': 'No highscores yet'}), 404
    return jsonify(best)


@highscores.route('/highscores', methods=['DELETE'])
def delete_highscores():
    event = resolve_event(request.args.get('eventId'))
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    removed = clear_highscores(event)
    current_app.logger.info(f"[highscores-clear] event={event.id} removed={removed}")
    return '', 204
