from __future__ import annotations

from sqlalchemy import JSON, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hexchess.models.base import Base, TimestampMixin


class DuelRecord(TimestampMixin, Base):
    """One finished duel."""

    __tablename__ = "duel_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    duel_id: Mapped[str] = mapped_column(String(64), unique=True)
    white_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    white_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    black_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    black_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    # "white" or "black"
    winner: Mapped[str] = mapped_column(String(8))
    end_reason: Mapped[str] = mapped_column(String(16))
    move_count: Mapped[int] = mapped_column(Integer, default=0)
    moves: Mapped[list] = mapped_column(JSON, default=list)

    __table_args__ = (
        Index("idx_duel_records_white", "white_id"),
        Index("idx_duel_records_black", "black_id"),
    )
    __mapper_args__ = {"eager_defaults": True}
