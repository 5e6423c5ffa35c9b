from __future__ import annotations


class RulesError(Exception):
    """Base class for rules engine errors."""
    pass


class InvariantViolation(RulesError):
    """Board or game data is in a state that should never happen."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
