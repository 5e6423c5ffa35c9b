from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hexchess.engine.history_store import HistoryEntry, HistoryStore
from hexchess.models.database import get_db

router = APIRouter(prefix="/players", tags=["history"])


@router.get("/{player_id}/history", response_model=list[HistoryEntry])
async def player_history(
    player_id: str,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> list[HistoryEntry]:
    """Finished duels the player took part in, newest first."""
    return await HistoryStore(db).list_for_player(player_id, limit)
