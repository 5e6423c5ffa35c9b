from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, Field

from hexchess.auth import create_token, new_guest
from hexchess.engine.models import Player

router = APIRouter(prefix="/auth", tags=["auth"])


class GuestRequest(BaseModel):
    name: str | None = Field(default=None, max_length=64)


class GuestResponse(BaseModel):
    token: str
    player: Player


@router.post("/guest", response_model=GuestResponse)
async def create_guest(request: GuestRequest | None = None) -> GuestResponse:
    """Issue a token for a new guest player."""
    player = new_guest(request.name if request else None)
    return GuestResponse(token=create_token(player), player=player)
