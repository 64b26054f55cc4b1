import random
import threading
import time

import pytest

from jumble_server import JumbleServer
from word_jumble.jumble_core import Puzzle, PuzzleLoadError, StaticPuzzleProvider
from word_jumble.session import JumbleSession

CATS = Puzzle("TACS", ("CATS", "ACTS"))
CATS_ROUND = "TACS|2|Jumble|CATS|ACTS"


class CountingProvider:
    """Hands out puzzles from a list in turn and counts the calls."""
    def __init__(self, *puzzles):
        self.puzzles = puzzles or (CATS,)
        self.calls = 0

    def next(self):
        puzzle = self.puzzles[self.calls % len(self.puzzles)]
        self.calls += 1
        return puzzle


class BrokenProvider:
    def next(self):
        raise PuzzleLoadError("data01.txt: word count 'x' is not an integer.")


def wait_until(predicate, timeout=3.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


@pytest.fixture()
def provider():
    return StaticPuzzleProvider([CATS])


@pytest.fixture()
def session(provider):
    """A session that has already completed the handshake."""
    s = JumbleSession(provider, rng=random.Random(7), name="test")
    assert s.handle_line("Hello from client").text == CATS_ROUND
    return s


@pytest.fixture()
def make_server():
    started = []

    def _make(provider=None, **kwargs):
        srv = JumbleServer(("127.0.0.1", 0), provider or StaticPuzzleProvider([CATS]), **kwargs)
        t = threading.Thread(target=srv.serve_forever, daemon=True)
        t.start()
        started.append((srv, t))
        return srv

    yield _make
    for srv, t in started:
        srv.shutdown()
        srv.server_close()
        t.join(timeout=5)


@pytest.fixture()
def live_server(make_server):
    return make_server()
