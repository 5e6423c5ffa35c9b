from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from hexchess.config import settings
from hexchess.engine.errors import DuelNotFoundError
from hexchess.engine.models import ColorPreference, DuelId, DuelSnapshot

router = APIRouter(prefix="/duels", tags=["duels"])


class CreateDuelRequest(BaseModel):
    color_preference: ColorPreference = ColorPreference.RANDOM


class CreateDuelResponse(BaseModel):
    duel_id: str


class DuelListResponse(BaseModel):
    next_cursor: float | None
    duel_ids: list[str]


@router.post("", response_model=CreateDuelResponse)
async def create_duel(request: Request, body: CreateDuelRequest | None = None) -> CreateDuelResponse:
    """Start a duel with both seats open."""
    preference = body.color_preference if body else ColorPreference.RANDOM
    duel_id = await request.app.state.duel_service.create(preference)
    return CreateDuelResponse(duel_id=duel_id)


@router.get("", response_model=DuelListResponse)
async def list_duels(
    request: Request,
    cursor: float | None = Query(None),
    count: int | None = Query(None, ge=1, le=100),
) -> DuelListResponse:
    """Page through live duels, least recently touched first."""
    next_cursor, duel_ids = await request.app.state.duel_service.list_ids(
        cursor, count or settings.duel_page_size
    )
    return DuelListResponse(next_cursor=next_cursor, duel_ids=duel_ids)


@router.get("/{duel_id}", response_model=DuelSnapshot)
async def get_duel(duel_id: str, request: Request) -> DuelSnapshot:
    try:
        duel = await request.app.state.duel_service.get(DuelId(duel_id))
    except DuelNotFoundError:
        raise HTTPException(status_code=404, detail=f"Duel '{duel_id}' not found")
    return duel.snapshot()
