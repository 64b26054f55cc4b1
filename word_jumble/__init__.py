"""
Word Jumble - server-authoritative multiplayer word jumble game.
"""

from .jumble_core import (
    GameConfig, Puzzle, PuzzleLoadError, Outcome, OutcomeKind,
    evaluate_guess, make_hint, parse_puzzle,
    StaticPuzzleProvider, DirectoryPuzzleProvider,
)
from .session import JumbleSession, GameState, GameOverReason, Reply

__all__ = [
    "GameConfig",
    "Puzzle",
    "PuzzleLoadError",
    "Outcome",
    "OutcomeKind",
    "evaluate_guess",
    "make_hint",
    "parse_puzzle",
    "StaticPuzzleProvider",
    "DirectoryPuzzleProvider",
    "JumbleSession",
    "GameState",
    "GameOverReason",
    "Reply",
]
