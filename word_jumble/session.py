"""
Per-connection game session.

A JumbleSession belongs to exactly one connection handler thread and is
never touched by another, so it carries no lock. Each call to handle()
consumes one decoded request and returns one Reply.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set
import logging
import random

from . import protocol
from .jumble_core import (
    GameConfig, OutcomeKind, Puzzle, PuzzleLoadError,
    evaluate_guess, make_hint, normalize,
)
from .protocol import Request, RequestKind

logger = logging.getLogger("word_jumble.session")


class GameState(Enum):
    AWAITING_START = "awaiting_start"
    ACTIVE = "active"
    GAME_OVER = "game_over"


class GameOverReason(Enum):
    WIN = "win"
    MAX_WRONG = protocol.MAX_WRONG_EXCEEDED
    TIME_UP = protocol.TIME_IS_UP


@dataclass
class Reply:
    """
    What to send back for one request.
    text=None means send nothing; close=True ends the connection
    after the text (if any) is written.
    """
    text: Optional[str]
    close: bool = False


class JumbleSession:
    """
    Authoritative game state for one player.
    Invariants:
      - found only ever holds normalized words of the current puzzle.
      - GAME_OVER accepts only NEW_GAME / DISCONNECT as state changes.
      - wrong_guesses and hints_used never exceed their configured caps.
    """
    def __init__(self, provider, cfg: Optional[GameConfig] = None,
                 rng: Optional[random.Random] = None, name: str = "session"):
        self.provider = provider
        self.cfg = cfg or GameConfig()
        self.rng = rng
        self.name = name
        self.state = GameState.AWAITING_START
        self.puzzle: Optional[Puzzle] = None
        self.found: Set[str] = set()
        self.wrong_guesses = 0
        self.hints_used = 0
        self.end_reason: Optional[GameOverReason] = None
        self.rounds_played = 0

    # ---------- dispatch ----------

    def handle(self, req: Request) -> Reply:
        logger.debug("[%s] %s in %s: %r", self.name, req.kind.name, self.state.name, req.text)

        if req.kind is RequestKind.DISCONNECT:
            logger.info("[%s] Client requested disconnect", self.name)
            return Reply(None, close=True)

        if req.kind is RequestKind.NEW_GAME:
            return self._start_round()

        if self.state is GameState.AWAITING_START:
            return self._handle_awaiting(req)
        if self.state is GameState.ACTIVE:
            return self._handle_active(req)
        return self._handle_game_over(req)

    def _handle_awaiting(self, req: Request) -> Reply:
        if req.kind is RequestKind.HELLO:
            return self._start_round()
        if req.kind is RequestKind.REQUEST_HINT:
            return Reply(protocol.encode_hint(protocol.HINT_NOT_ACTIVE))
        return Reply(protocol.NOT_ACTIVE)

    def _handle_active(self, req: Request) -> Reply:
        if req.kind is RequestKind.HELLO:
            return Reply(self._announce())
        if req.kind is RequestKind.REQUEST_HINT:
            return self._hint()
        if req.kind is RequestKind.TIME_UP:
            logger.info("[%s] Time's up reported by client", self.name)
            return self._end(GameOverReason.TIME_UP)
        return self._guess(req.text)

    def _handle_game_over(self, req: Request) -> Reply:
        # TIME_UP after game over is answered but never re-ends the round
        if req.kind is RequestKind.REQUEST_HINT:
            return Reply(protocol.encode_hint(protocol.HINT_NOT_ACTIVE))
        return Reply(protocol.NOT_ACTIVE)

    # ---------- transitions ----------

    def _start_round(self) -> Reply:
        try:
            puzzle = self.provider.next()
        except PuzzleLoadError as e:
            logger.error("[%s] Puzzle load failed: %s", self.name, e)
            return Reply(protocol.PUZZLE_UNAVAILABLE, close=True)

        self.puzzle = puzzle
        self.found = set()
        self.wrong_guesses = 0
        self.hints_used = 0
        self.end_reason = None
        self.state = GameState.ACTIVE
        self.rounds_played += 1
        logger.info("[%s] Round %d started (%d words)",
                    self.name, self.rounds_played, len(puzzle.words))
        return Reply(self._announce())

    def _announce(self) -> str:
        return protocol.encode_round(self.puzzle.jumble, self.puzzle.words)

    def _guess(self, text: str) -> Reply:
        outcome = evaluate_guess(self.puzzle, text, self.found)

        if outcome.kind is OutcomeKind.SYSTEM_COMMAND:
            return Reply(self._announce())

        if outcome.kind is OutcomeKind.FOUND:
            self.found.add(normalize(outcome.word))
            if len(self.found) == len(self.puzzle.words):
                self.state = GameState.GAME_OVER
                self.end_reason = GameOverReason.WIN
                logger.info("[%s] All %d words found - player wins",
                            self.name, len(self.found))
            return Reply(protocol.encode_found(outcome.word))

        if outcome.kind is OutcomeKind.DUPLICATE:
            logger.info("[%s] Duplicate word - already found", self.name)
            return Reply(protocol.DUPLICATE)

        self.wrong_guesses += 1
        logger.info("[%s] Wrong guess #%d/%d", self.name,
                    self.wrong_guesses, self.cfg.max_wrong_guesses)
        if self.wrong_guesses >= self.cfg.max_wrong_guesses:
            return self._end(GameOverReason.MAX_WRONG)
        return Reply(protocol.WRONG)

    def _hint(self) -> Reply:
        if self.hints_used >= self.cfg.max_hints:
            return Reply(protocol.encode_hint(protocol.NO_HINTS_LEFT))
        self.hints_used += 1
        clue = make_hint(self.puzzle.unfound(self.found), self.rng)
        logger.info("[%s] Hint #%d/%d given", self.name, self.hints_used, self.cfg.max_hints)
        return Reply(protocol.encode_hint(clue))

    def _end(self, reason: GameOverReason) -> Reply:
        self.state = GameState.GAME_OVER
        self.end_reason = reason
        unfound = self.puzzle.unfound(self.found)
        logger.info("[%s] Game over (%s), %d words unfound",
                    self.name, reason.name, len(unfound))
        return Reply(protocol.encode_game_over(reason.value, unfound))

    # ---------- convenience ----------

    def handle_line(self, line: str) -> Reply:
        """Decode a raw request line and handle it."""
        return self.handle(protocol.decode_request(line))

    def summary(self) -> str:
        return (f"Wrong guesses: {self.wrong_guesses}, Hints used: {self.hints_used}, "
                f"Rounds: {self.rounds_played}")
