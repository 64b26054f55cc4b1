"""
Wire format for the jumble protocol.

Requests and responses are single UTF-8 lines terminated by '\\n'.
Responses are '|'-joined text fields; requests are bare tokens.
"""

from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, List, Optional, Sequence

from .jumble_core import HANDSHAKE, normalize

MAX_LINE_BYTES = 1024
SEP = "|"

# Response sentinels
FOUND = "Found"
JUMBLE = "Jumble"
DUPLICATE = "Duplicate|AlreadyFound"
WRONG = "Wrong|TryAgain"
HINT = "HINT"
NO_HINTS_LEFT = "No hints left!"
HINT_NOT_ACTIVE = "Game is not active"
GAME_OVER = "GameOver"
MAX_WRONG_EXCEEDED = "MaxWrongGuessesExceeded"
TIME_IS_UP = "TimeIsUp"
NOT_ACTIVE = "GameNotActive"
PUZZLE_UNAVAILABLE = "Error|PuzzleUnavailable"


class ProtocolError(Exception):
    """The byte stream can no longer be framed into requests."""


class RequestKind(Enum):
    HELLO = "hello"
    NEW_GAME = "NEW_GAME"
    REQUEST_HINT = "REQUEST_HINT"
    TIME_UP = "TIME_UP"
    DISCONNECT = "DISCONNECT"
    GUESS = "guess"


CONTROL_TOKENS = {
    "NEW_GAME": RequestKind.NEW_GAME,
    "REQUEST_HINT": RequestKind.REQUEST_HINT,
    "TIME_UP": RequestKind.TIME_UP,
    "DISCONNECT": RequestKind.DISCONNECT,
}


@dataclass(frozen=True)
class Request:
    kind: RequestKind
    text: str = ""


# ---------------- Framing ---------------- #

def read_line(rfile: BinaryIO, limit: int = MAX_LINE_BYTES) -> Optional[str]:
    """
    Read one framed request.
    Returns None on EOF. Raises ProtocolError for an oversized line.
    Invalid UTF-8 is replaced with U+FFFD; such a line can never match
    a word, so it is answered as a wrong guess.
    """
    raw = rfile.readline(limit + 1)
    if not raw:
        return None
    if len(raw) > limit and not raw.endswith(b"\n"):
        raise ProtocolError(f"Request exceeds {limit} bytes.")
    return raw.decode("utf-8", errors="replace").rstrip("\r\n")


def frame(line: str) -> bytes:
    """Encode one response/request line for the wire."""
    return (line.replace("\n", " ") + "\n").encode("utf-8")


# ---------------- Requests ---------------- #

def decode_request(line: str) -> Request:
    """Map a raw line to a request. Anything unrecognized is a guess."""
    token = line.strip()
    if normalize(token).startswith(HANDSHAKE):
        return Request(RequestKind.HELLO, token)
    kind = CONTROL_TOKENS.get(token.upper())
    if kind is not None:
        return Request(kind, token)
    return Request(RequestKind.GUESS, token)


# ---------------- Responses ---------------- #

def encode_round(jumble: str, words: Sequence[str]) -> str:
    return SEP.join([jumble, str(len(words)), JUMBLE, *words])


def encode_found(word: str) -> str:
    return f"{word}{SEP}{FOUND}"


def encode_hint(text: str) -> str:
    return f"{HINT}{SEP}{text}"


def encode_game_over(reason: str, unfound: List[str]) -> str:
    return SEP.join([GAME_OVER, reason, ", ".join(unfound)])
