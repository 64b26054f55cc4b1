import os
from pathlib import Path

PUZZLE_DIR = Path(__file__).parent / "puzzles"


class Config:
    HOST = os.environ.get('JUMBLE_HOST') or '127.0.0.1'
    PORT = int(os.environ.get('JUMBLE_PORT', '5000'))
    PUZZLE_DIR = os.environ.get('JUMBLE_PUZZLE_DIR') or str(PUZZLE_DIR)
    # Seconds a connection may sit idle before it is closed. 0 disables.
    IDLE_TIMEOUT_SEC = float(os.environ.get('JUMBLE_IDLE_TIMEOUT', '0'))
    LOG_LEVEL = os.environ.get('JUMBLE_LOG_LEVEL', 'INFO')
    # Per-round limits
    MAX_WRONG_GUESSES = int(os.environ.get('JUMBLE_MAX_WRONG_GUESSES', '3'))
    MAX_HINTS = int(os.environ.get('JUMBLE_MAX_HINTS', '3'))
