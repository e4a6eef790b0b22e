from typeracer import create_app, db, socketio
from typeracer.services.events import ensure_default_event

app = create_app()

if __name__ == '__main__':
    with app.app_context():
        db.create_all()
        ensure_default_event()
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True)
