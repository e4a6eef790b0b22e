from flask import Blueprint, jsonify, request

from typeracer.services.events import resolve_event
from typeracer.services.players import (
    DuplicatePlayerError, clear_players, list_players, name_available, register_player,
)
from typeracer.services.validation import PayloadError

players = Blueprint('players', __name__)


@players.route('', methods=['GET'])
def get_players():
    event = resolve_event(request.args.get('eventId'))
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    return jsonify([p.to_dict() for p in list_players(event)])


@players.route('', methods=['POST'])
def post_player():
    event = resolve_event(request.args.get('eventId'))
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    try:
        player = register_player(event, request.get_json(silent=True))
    except PayloadError as exc:
        return jsonify(exc.to_dict()), 400
    except DuplicatePlayerError:
        return jsonify({'error': 'Email already registered'}), 409
    return jsonify(player.to_dict()), 201


@players.route('/check-name', methods=['GET'])
def check_name():
    event = resolve_event(request.args.get('eventId'))
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    return jsonify({'available': name_available(event, request.args.get('name', ''))})


@players.route('', methods=['DELETE'])
def delete_players():
    event = resolve_event(request.args.get('eventId'))
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    clear_players(event)
    return '', 204
