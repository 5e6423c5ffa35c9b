from __future__ import annotations

from hexchess.models.base import Base, TimestampMixin
from hexchess.models.history import DuelRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "DuelRecord",
]
