from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict
from sqlalchemy import or_, select

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

from hexchess.engine.duel import Duel
from hexchess.models.history import DuelRecord


class HistoryEntry(BaseModel):
    """A finished duel as returned by the history API."""

    model_config = ConfigDict(from_attributes=True)

    duel_id: str
    white_id: str | None = None
    white_name: str | None = None
    black_id: str | None = None
    black_name: str | None = None
    winner: str
    end_reason: str
    move_count: int
    moves: list[dict]
    created_at: datetime | None = None


class HistoryStore:
    """Database-backed history store."""

    def __init__(self, db_session: AsyncSession) -> None:
        self.db_session = db_session

    async def record(self, duel: Duel) -> None:
        if not duel.ended or duel.winner is None or duel.end_reason is None:
            raise ValueError(f"Duel {duel.id} has not ended")

        white, black = duel.white_player, duel.black_player
        row = DuelRecord(
            duel_id=duel.id,
            white_id=white.id if white else None,
            white_name=white.name if white else None,
            black_id=black.id if black else None,
            black_name=black.name if black else None,
            winner=duel.winner.name.lower(),
            end_reason=duel.end_reason.value,
            move_count=len(duel.move_history),
            moves=[m.model_dump(by_alias=True) for m in duel.move_history],
        )
        self.db_session.add(row)
        # Commit happens at session level
        await self.db_session.flush()

    async def list_for_player(self, player_id: str, limit: int = 50) -> list[HistoryEntry]:
        stmt = (
            select(DuelRecord)
            .where(or_(DuelRecord.white_id == player_id, DuelRecord.black_id == player_id))
            .order_by(DuelRecord.id.desc())
            .limit(limit)
        )
        result = await self.db_session.execute(stmt)
        return [HistoryEntry.model_validate(row) for row in result.scalars().all()]
