import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def _ensure_sqlite_dir(uri: str) -> None:
    prefix = 'sqlite:///'
    if uri and uri.startswith(prefix):
        folder = os.path.dirname(uri[len(prefix):])
        if folder:
            os.makedirs(folder, exist_ok=True)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    _ensure_sqlite_dir(flask_app.config.get('SQLALCHEMY_DATABASE_URI', ''))

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from typeracer.main import main
    flask_app.register_blueprint(main)

    from typeracer.api.events import events
    from typeracer.api.players import players
    from typeracer.api.highscores import highscores
    from typeracer.api.race import race
    flask_app.register_blueprint(events, url_prefix='/api/events')
    flask_app.register_blueprint(players, url_prefix='/api/players')
    # Mounted at /api: serves both /api/scores and /api/highscores
    flask_app.register_blueprint(highscores, url_prefix='/api')
    flask_app.register_blueprint(race, url_prefix='/api/race')

    from typeracer.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with the default event."""
        from typeracer.services.events import ensure_default_event
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            ensure_default_event()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
