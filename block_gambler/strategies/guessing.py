"""
Guess selection.

The game pays when the guessed character matches the one the contract derives
from the bet's block hash. There are sixteen possible characters and no
information about the next block hash, so the only strategies are "always the
same symbol" (manual) and "any symbol" (random).
"""

import random
from typing import Optional

from block_gambler.config import BET_MODES, MANUAL, RANDOM
from block_gambler.errors import InvalidGuess, InvalidRunConfig

GUESS_ALPHABET = "0123456789abcdef"


def validate_guess(guess) -> str:
    """Return ``guess`` if it is one of the sixteen symbols, else raise InvalidGuess."""
    if not isinstance(guess, str) or len(guess) != 1 or guess not in GUESS_ALPHABET:
        raise InvalidGuess(guess)
    return guess


def validate_mode(mode: str) -> str:
    if mode not in BET_MODES:
        raise InvalidRunConfig(f"Unknown bet mode {mode!r}, expected one of {BET_MODES}")
    return mode


class GuessSelector:
    """Picks the guess for each bet.

    Random mode draws from ``rng`` (the module-level ``random`` source unless
    one is supplied) uniformly and independently for every bet.
    """

    def __init__(self, mode: str = MANUAL, guess: Optional[str] = None, rng=None):
        self.mode = validate_mode(mode)
        self.rng = rng or random
        self.guess = validate_guess(guess) if mode == MANUAL else guess
        self.drawn: list[str] = []

    def next_guess(self) -> str:
        if self.mode == RANDOM:
            choice = GUESS_ALPHABET[self.rng.randrange(len(GUESS_ALPHABET))]
        else:
            choice = self.guess
        self.drawn.append(choice)
        return choice
