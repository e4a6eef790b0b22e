from flask import Blueprint, current_app, jsonify

from typeracer.texts import load_race_text

race = Blueprint('race', __name__)


@race.route('', methods=['GET'])
def get_race():
    cfg = current_app.config
    return jsonify({
        'text': load_race_text(cfg),
        'durationSeconds': int(cfg.get('RACE_DURATION_SEC', 60)),
        'ghostDefaultCps': float(cfg.get('GHOST_DEFAULT_CPS', 3.5)) or None,
    })
