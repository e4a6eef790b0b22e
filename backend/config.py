import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
STORAGE_DIR = os.environ.get('STORAGE_DIR') or os.path.join(BASE_DIR, 'data')

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(STORAGE_DIR, 'typeracer.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Race timing (seconds)
    RACE_DURATION_SEC = int(os.environ.get('RACE_DURATION_SEC', '60'))
    # Ghost pace used when the event has no highscores yet. 0 hides the ghost.
    GHOST_DEFAULT_CPS = float(os.environ.get('GHOST_DEFAULT_CPS', '3.5'))
    # How often the ghost position is pushed to racers (ms)
    GHOST_FRAME_INTERVAL_MS = int(os.environ.get('GHOST_FRAME_INTERVAL_MS', '50'))
    HIGHSCORE_LIMIT = int(os.environ.get('HIGHSCORE_LIMIT', '10'))
    # Optional: plain text file replacing the built-in race text
    RACE_TEXT_PATH = os.environ.get('RACE_TEXT_PATH')
    DEFAULT_EVENT_ID = os.environ.get('DEFAULT_EVENT_ID', 'default')
