"""Rock-paper-scissors moves and round outcome resolution."""

from __future__ import annotations

from enum import Enum
from typing import Any


class Move(str, Enum):
    ROCK = "rock"
    PAPER = "paper"
    SCISSORS = "scissors"


class Outcome(str, Enum):
    DRAW = "draw"
    A_WINS = "a"
    B_WINS = "b"


# move -> the move it defeats
_BEATS: dict[Move, Move] = {
    Move.ROCK: Move.SCISSORS,
    Move.SCISSORS: Move.PAPER,
    Move.PAPER: Move.ROCK,
}


def parse_move(value: Any) -> Move | None:
    """Return the Move for a raw wire value, or None when it is not a valid move."""
    if not isinstance(value, str):
        return None
    try:
        return Move(value)
    except ValueError:
        return None


def resolve(move_a: Move, move_b: Move) -> Outcome:
    """Resolve one round between player A and player B."""
    if move_a == move_b:
        return Outcome.DRAW
    if _BEATS[move_a] == move_b:
        return Outcome.A_WINS
    return Outcome.B_WINS


__all__ = ["Move", "Outcome", "parse_move", "resolve"]
