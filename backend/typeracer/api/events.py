"""Event administration and the active-event stream."""
import json
import queue

from flask import Blueprint, Response, current_app, jsonify, request

from typeracer.services.events import (
    activate_event, can_delete_event, create_event, delete_event, get_active_event,
    list_events, resolve_event, update_event,
)
from typeracer.services.events.broadcast import active_event_broadcaster
from typeracer.services.validation import PayloadError

events = Blueprint('events', __name__)

# Comment frame sent while no activation happens so proxies keep the stream open
STREAM_KEEPALIVE_SEC = 15


def _sse(payload) -> str:
    return f"event: active_event\ndata: {json.dumps(payload)}\n\n"


@events.route('', methods=['GET'])
def get_events():
    return jsonify([e.to_dict() for e in list_events()])


@events.route('', methods=['POST'])
def post_event():
    try:
        event = create_event(request.get_json(silent=True))
    except PayloadError as exc:
        return jsonify(exc.to_dict()), 400
    return jsonify(event.to_dict()), 201


@events.route('/<string:event_id>', methods=['PUT'])
def put_event(event_id):
    event = resolve_event(event_id)
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    try:
        event = update_event(event, request.get_json(silent=True))
    except PayloadError as exc:
        return jsonify(exc.to_dict()), 400
    return jsonify(event.to_dict())


@events.route('/<string:event_id>/activate', methods=['POST'])
def post_activate(event_id):
    event = resolve_event(event_id)
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    return jsonify(activate_event(event).to_dict())


@events.route('/<string:event_id>', methods=['DELETE'])
def remove_event(event_id):
    event = resolve_event(event_id)
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    if not can_delete_event(event):
        return jsonify({'error': 'The default event and the active event cannot be deleted'}), 400
    delete_event(event)
    current_app.logger.info(f"[event-delete] event={event_id}")
    return '', 204


@events.route('/active', methods=['GET'])
def get_active():
    return jsonify(get_active_event().to_dict())


@events.route('/active/stream', methods=['GET'])
def stream_active():
    """Server-Sent Events: the active event now, then one frame per activation."""
    initial = get_active_event().to_dict()

    def generate():
        subscription = active_event_broadcaster.subscribe()
        try:
            yield _sse(initial)
            while True:
                try:
                    payload = subscription.get(timeout=STREAM_KEEPALIVE_SEC)
                except queue.Empty:
                    yield ': keepalive\n\n'
                    continue
                yield _sse(payload)
        finally:
            active_event_broadcaster.unsubscribe(subscription)

    headers = {'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'}
    return Response(generate(), mimetype='text/event-stream', headers=headers)
