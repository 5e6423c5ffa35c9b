from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from jose import JWTError, jwt

from hexchess.config import settings
from hexchess.engine.models import Player, PlayerId

GUEST_NAME_PREFIX = "Guest"


def new_guest(name: str | None = None) -> Player:
    player_id = PlayerId(str(uuid.uuid4()))
    return Player(id=player_id, name=name or f"{GUEST_NAME_PREFIX}-{player_id[:8]}")


def create_token(player: Player) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {"sub": player.id, "name": player.name, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Player:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return Player(id=PlayerId(payload["sub"]), name=payload["name"])
    except (JWTError, KeyError) as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from e
