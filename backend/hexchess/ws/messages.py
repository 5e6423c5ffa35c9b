from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from hexchess.engine.models import DuelSnapshot, MoveModel, Player


class ServerMessageType(str, Enum):
    JOIN = "JOIN"
    MOVE = "MOVE"
    FORFEIT = "FORFEIT"
    ERROR = "ERROR"


class ClientMessageType(str, Enum):
    MOVE = "MOVE"
    FORFEIT = "FORFEIT"


class ServerMessage(BaseModel):
    type: ServerMessageType
    player: Player | None = None
    move: MoveModel | None = None
    session: DuelSnapshot | None = None
    error: str | None = None
    message: str | None = None

    def to_wire(self) -> dict:
        # drop unset top-level fields only; the session keeps its nulls
        data = self.model_dump(mode="json", by_alias=True)
        return {key: value for key, value in data.items() if value is not None}


class ClientMessage(BaseModel):
    type: ClientMessageType
    move: MoveModel | None = None
