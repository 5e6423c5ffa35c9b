from __future__ import annotations

from hexchess.engine.models import MoveModel
from hexchess.rules.errors import InvariantViolation

__all__ = [
    "DuelError",
    "DuelNotFoundError",
    "GameNotActiveError",
    "IllegalMoveError",
    "InvalidMoveError",
    "InvariantViolation",
    "NotYourTurnError",
]


class DuelError(Exception):
    """Base class for duel session errors."""
    pass


class DuelNotFoundError(DuelError):
    """No duel with this id exists in the store."""
    pass


class InvalidMoveError(DuelError):
    """A move or forfeit the caller may not make. Recoverable."""

    def __init__(self, message: str, move: MoveModel | None = None):
        self.message = message
        self.move = move
        super().__init__(message)


class GameNotActiveError(InvalidMoveError):
    """Move submitted to a duel that has ended."""
    pass


class NotYourTurnError(InvalidMoveError):
    """Player tried to move when it's not their turn, or the duel isn't full."""
    pass


class IllegalMoveError(InvalidMoveError):
    """Move is not in the side to move's legal-move list."""
    pass
