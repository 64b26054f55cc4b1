import socket

import pytest

from jumble_server import build_parser, main
from word_jumble.client import JumbleClient, parse_response, round_size
from word_jumble.jumble_core import GameConfig

from conftest import CATS_ROUND, BrokenProvider, wait_until


def connect(srv) -> JumbleClient:
    host, port = srv.server_address[:2]
    return JumbleClient(host, port, timeout=5).connect()


def test_handshake_sends_round(live_server):
    with connect(live_server) as c:
        assert c.hello() == CATS_ROUND


def test_full_round_over_the_wire(live_server):
    with connect(live_server) as c:
        c.hello()
        assert c.guess("cats") == "CATS|Found"
        assert c.guess("CATS") == "Duplicate|AlreadyFound"
        assert c.hint() == "HINT|Starts with 'A' and ends with 'S'"
        assert c.guess("acts") == "ACTS|Found"
        assert c.guess("anything") == "GameNotActive"


def test_wrong_guesses_then_replay_on_same_connection(live_server):
    with connect(live_server) as c:
        c.hello()
        assert c.guess("xx") == "Wrong|TryAgain"
        assert c.guess("yy") == "Wrong|TryAgain"
        assert c.guess("zz") == "GameOver|MaxWrongGuessesExceeded|CATS, ACTS"
        assert c.new_game() == CATS_ROUND
        assert c.guess("cats") == "CATS|Found"


def test_hint_limit_over_the_wire(live_server):
    with connect(live_server) as c:
        c.hello()
        replies = [c.hint() for _ in range(4)]
        assert all(r.startswith("HINT|Starts with") for r in replies[:3])
        assert replies[3] == "HINT|No hints left!"


def test_time_up_over_the_wire(live_server):
    with connect(live_server) as c:
        c.hello()
        assert c.time_up() == "GameOver|TimeIsUp|CATS, ACTS"
        assert c.time_up() == "GameNotActive"


def test_sessions_are_independent(live_server):
    with connect(live_server) as a, connect(live_server) as b:
        a.hello()
        b.hello()
        assert a.guess("cats") == "CATS|Found"
        assert b.guess("cats") == "CATS|Found"
        a.guess("xx")
        a.guess("yy")
        a.guess("zz")
        assert b.guess("acts") == "ACTS|Found"
        assert a.guess("acts") == "GameNotActive"


def test_disconnect_closes_connection(live_server):
    c = connect(live_server)
    c.hello()
    assert wait_until(lambda: live_server.active_sessions == 1)
    c.send("DISCONNECT")
    with pytest.raises(ConnectionError):
        c.receive()
    c.close()
    assert wait_until(lambda: live_server.active_sessions == 0)


def test_abrupt_close_ends_only_that_session(live_server):
    keep = connect(live_server)
    keep.hello()
    drop = connect(live_server)
    drop.hello()
    drop.guess("cats")
    drop.close()
    assert wait_until(lambda: live_server.active_sessions == 1)
    assert keep.guess("cats") == "CATS|Found"
    keep.close()


def test_oversized_request_closes_connection(live_server):
    with connect(live_server) as c:
        c.hello()
        c.send("a" * 5000)
        with pytest.raises(ConnectionError):
            c.receive()
    assert wait_until(lambda: live_server.active_sessions == 0)


def test_invalid_utf8_guess_is_wrong_and_connection_stays_open(live_server):
    with connect(live_server) as c:
        c.hello()
        c.sock.sendall(b"CAT\xff\n")
        assert c.receive() == "Wrong|TryAgain"
        assert c.guess("cats") == "CATS|Found"


def test_puzzle_failure_reported_then_closed(make_server):
    srv = make_server(BrokenProvider())
    with connect(srv) as c:
        assert c.hello() == "Error|PuzzleUnavailable"
        with pytest.raises(ConnectionError):
            c.receive()


def test_idle_timeout_closes_connection(make_server):
    srv = make_server(idle_timeout=0.2)
    with connect(srv) as c:
        c.hello()
        with pytest.raises(ConnectionError):
            c.receive()


def test_custom_game_config(make_server):
    srv = make_server(cfg=GameConfig(max_wrong_guesses=1, max_hints=0))
    with connect(srv) as c:
        c.hello()
        assert c.hint() == "HINT|No hints left!"
        assert c.guess("xx").startswith("GameOver|MaxWrongGuessesExceeded")


def test_server_close_cancels_live_sessions(make_server):
    srv = make_server()
    c = connect(srv)
    c.hello()
    srv.shutdown()
    srv.server_close()
    assert srv.active_sessions == 0
    with pytest.raises(ConnectionError):
        c.receive()
    c.close()


def test_client_parses_every_response_kind():
    assert parse_response(CATS_ROUND).kind == "round"
    assert parse_response("CATS|Found").kind == "found"
    assert parse_response("Duplicate|AlreadyFound").kind == "duplicate"
    assert parse_response("Wrong|TryAgain").kind == "wrong"
    assert parse_response("HINT|No hints left!").kind == "hint"
    assert parse_response("GameOver|TimeIsUp|CATS").kind == "game_over"
    assert parse_response("GameNotActive").kind == "not_active"
    assert parse_response("Error|PuzzleUnavailable").kind == "error"
    assert parse_response("???").kind == "unknown"


def test_parser_defaults():
    args = build_parser().parse_args(["--port", "0", "--idle-timeout", "30"])
    assert args.port == 0
    assert args.idle_timeout == 30.0


def test_main_refuses_missing_puzzle_dir(tmp_path):
    assert main(["--puzzle-dir", str(tmp_path / "missing")]) == 1


def test_client_requires_connection():
    with pytest.raises(ConnectionError):
        JumbleClient("127.0.0.1", 1).send("CATS")


def test_connection_refused_is_an_os_error():
    s = socket.socket()
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    with pytest.raises(OSError):
        JumbleClient("127.0.0.1", port, timeout=1).connect()


@pytest.mark.parametrize("line, size", [
    (CATS_ROUND, 2),
    ("TACS|x|Jumble|CATS", None),
    ("Error|PuzzleUnavailable", None),
    ("GameNotActive", None),
    ("???", None),
])
def test_round_size_only_reads_round_announcements(line, size):
    assert round_size(parse_response(line)) == size
