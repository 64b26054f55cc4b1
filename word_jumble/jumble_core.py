"""
jumble_core.py
---------------------------------------------------
Core logic for the Word Jumble game.
Includes:
 - Puzzle model + puzzle file parsing
 - Guess evaluation (Found / Duplicate / Wrong / SystemCommand)
 - First/last letter hint generation
 - Puzzle providers (directory of files, in-memory pool)
---------------------------------------------------
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple
import logging
import random

logger = logging.getLogger("word_jumble.puzzles")

HANDSHAKE = "hello from client"
NEW_GAME_TOKEN = "new_game"
NO_UNFOUND_HINT = "All words found! Keep guessing!"


class PuzzleLoadError(Exception):
    """A puzzle could not be loaded or failed validation."""


def normalize(w: str) -> str:
    """Normalize input word: trim + casefold."""
    return w.strip().casefold()


# ---------------- Game Config & Puzzle ---------------- #

@dataclass
class GameConfig:
    """Per-round limits. Both counters reset on every new round."""
    max_wrong_guesses: int = 3
    max_hints: int = 3


@dataclass(frozen=True)
class Puzzle:
    """One round's data: the jumble shown to the player and its solutions."""
    jumble: str
    words: Tuple[str, ...]

    def __post_init__(self):
        if not self.jumble or not self.jumble.strip():
            raise PuzzleLoadError("Puzzle jumble is empty.")
        if not self.words:
            raise PuzzleLoadError("Puzzle has no words.")
        if any(not w.strip() for w in self.words):
            raise PuzzleLoadError("Puzzle contains a blank word.")
        # every word must be guessable, and each one counts once toward a win
        bad = [w for w in self.words if not normalize(w).isalpha()]
        if bad:
            raise PuzzleLoadError(f"Puzzle words must be letters only: {', '.join(bad)}")
        if len({normalize(w) for w in self.words}) != len(self.words):
            raise PuzzleLoadError("Puzzle contains duplicate words.")

    def unfound(self, found: Set[str]) -> List[str]:
        """Words not yet found, in source order."""
        return [w for w in self.words if normalize(w) not in found]


def parse_puzzle(text: str, source: str = "<memory>") -> Puzzle:
    """
    Parse the puzzle file format:
      line 1  = jumble
      line 2  = word count
      line 3+ = words (extra lines beyond the count are ignored)
    Blank lines are skipped.
    """
    lines = [ln.strip().replace("\ufeff", "") for ln in text.splitlines()]
    lines = [ln for ln in lines if ln]
    if len(lines) < 2:
        raise PuzzleLoadError(f"{source}: expected jumble and word count lines.")

    jumble, count_line = lines[0], lines[1]
    try:
        count = int(count_line)
    except ValueError:
        raise PuzzleLoadError(f"{source}: word count {count_line!r} is not an integer.")
    if count <= 0:
        raise PuzzleLoadError(f"{source}: word count must be positive, got {count}.")

    words = lines[2:2 + count]
    if len(words) < count:
        raise PuzzleLoadError(f"{source}: declared {count} words but found {len(words)}.")
    return Puzzle(jumble, tuple(words))


# ---------------- Guess Evaluation ---------------- #

class OutcomeKind(Enum):
    FOUND = "found"
    DUPLICATE = "duplicate"
    WRONG = "wrong"
    SYSTEM_COMMAND = "system_command"


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating one guess. `word` is set only for FOUND."""
    kind: OutcomeKind
    word: Optional[str] = None


def is_system_text(text: str) -> bool:
    """True for the handshake line or the bare new_game token."""
    t = normalize(text)
    return t.startswith(HANDSHAKE) or t == NEW_GAME_TOKEN


def evaluate_guess(puzzle: Puzzle, guess: str, found: Set[str]) -> Outcome:
    """
    Classify a guess against the puzzle.
    Does not mutate `found`; the caller records FOUND words.
    Empty and non-alphabetic guesses are WRONG.
    """
    if is_system_text(guess):
        return Outcome(OutcomeKind.SYSTEM_COMMAND)

    g = normalize(guess)
    if not g or not g.isalpha():
        return Outcome(OutcomeKind.WRONG)

    for word in puzzle.words:
        if normalize(word) == g:
            if g in found:
                return Outcome(OutcomeKind.DUPLICATE)
            return Outcome(OutcomeKind.FOUND, word)
    return Outcome(OutcomeKind.WRONG)


# ---------------- Hints ---------------- #

def make_hint(unfound_words: Sequence[str], rng: Optional[random.Random] = None) -> str:
    """
    Pick one unfound word at random and describe its first and last letter.
    The word itself is never revealed.
    """
    if not unfound_words:
        return NO_UNFOUND_HINT
    rng = rng or random.Random()
    word = rng.choice(list(unfound_words))
    return f"Starts with '{word[0]}' and ends with '{word[-1]}'"


# ---------------- Puzzle Providers ---------------- #

class StaticPuzzleProvider:
    """Uniform selection from an in-memory pool."""
    def __init__(self, puzzles: Iterable[Puzzle]):
        self.puzzles = tuple(puzzles)
        if not self.puzzles:
            raise PuzzleLoadError("Puzzle pool is empty.")

    def next(self, rng: Optional[random.Random] = None) -> Puzzle:
        return (rng or random.Random()).choice(self.puzzles)


class DirectoryPuzzleProvider:
    """
    One puzzle per *.txt file in a directory.
    The chosen file is read on every call, so sessions share nothing
    but the (immutable) list of file paths.
    """
    def __init__(self, directory):
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise PuzzleLoadError(f"Puzzle directory not found: {self.directory}")
        self.files = tuple(sorted(self.directory.glob("*.txt")))
        if not self.files:
            raise PuzzleLoadError(f"No puzzle files in {self.directory}")
        logger.info("Found %d puzzle files in %s", len(self.files), self.directory)

    def next(self, rng: Optional[random.Random] = None) -> Puzzle:
        path = (rng or random.Random()).choice(self.files)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PuzzleLoadError(f"Cannot read {path.name}: {e}") from e
        puzzle = parse_puzzle(text, source=path.name)
        logger.info("Loaded game file: %s with %d words", path.name, len(puzzle.words))
        return puzzle
