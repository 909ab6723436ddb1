"""Pure round logic, free of transport and room state."""

from rpsroom.game.outcome import Move
from rpsroom.game.outcome import Outcome
from rpsroom.game.outcome import parse_move
from rpsroom.game.outcome import resolve

__all__ = ["Move", "Outcome", "parse_move", "resolve"]
