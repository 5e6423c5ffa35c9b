from __future__ import annotations

from enum import Enum
from typing import NewType

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hexchess.rules.board import Board
from hexchess.rules.game import ChessGame
from hexchess.rules.types import Color, Hexagon, Move, PieceMoves, in_bounds

# --- Identifiers ---
PlayerId = NewType("PlayerId", str)
DuelId = NewType("DuelId", str)


# --- Player ---
class Player(BaseModel):
    """Opaque identity supplied by the auth layer. Equal when ids match."""

    id: PlayerId
    name: str

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Player):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


# --- Seating ---
class ColorPreference(str, Enum):
    WHITE = "white"
    BLACK = "black"
    RANDOM = "random"


class EndReason(str, Enum):
    CHECKMATE = "checkmate"
    FORFEIT = "forfeit"


# --- Moves ---
def _parse_hexagon(value: str) -> str:
    hex = Hexagon.from_notation(value)
    if not in_bounds(hex):
        raise ValueError(f"Hexagon {value!r} is off the board")
    return hex.notation


class MoveModel(BaseModel):
    """A move in notation form, e.g. ``{"from": "f5", "to": "f6"}``."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str

    @field_validator("from_", "to")
    @classmethod
    def _valid_hexagon(cls, value: str) -> str:
        return _parse_hexagon(value)

    @classmethod
    def from_move(cls, move: Move) -> MoveModel:
        return cls(from_=move.from_hex.notation, to=move.to_hex.notation)

    def to_move(self) -> Move:
        return Move.from_notation(self.from_, self.to)


class PieceMovesData(BaseModel):
    hex: str
    moves: list[str] = Field(default_factory=list)

    @classmethod
    def from_piece_moves(cls, pm: PieceMoves) -> PieceMovesData:
        return cls(hex=pm.hex.notation, moves=[m.notation for m in pm.moves])

    def to_piece_moves(self) -> PieceMoves:
        return PieceMoves(
            Hexagon.from_notation(self.hex),
            [Hexagon.from_notation(m) for m in self.moves],
        )


# --- Board / game serialization ---
class BoardData(BaseModel):
    turn: Color
    pieces: list[list[int]]

    @classmethod
    def from_board(cls, board: Board) -> BoardData:
        return cls(turn=board.turn, pieces=[list(f) for f in board.pieces])

    def to_board(self) -> Board:
        return Board(Color(self.turn), [list(f) for f in self.pieces])


class GameData(BaseModel):
    board: BoardData
    white_moves: list[PieceMovesData] | None = None
    black_moves: list[PieceMovesData] | None = None

    @classmethod
    def from_game(cls, game: ChessGame) -> GameData:
        def _dump(moves: list[PieceMoves] | None) -> list[PieceMovesData] | None:
            if moves is None:
                return None
            return [PieceMovesData.from_piece_moves(pm) for pm in moves]

        return cls(
            board=BoardData.from_board(game.board),
            white_moves=_dump(game.white_moves),
            black_moves=_dump(game.black_moves),
        )

    def to_game(self) -> ChessGame:
        def _load(moves: list[PieceMovesData] | None) -> list[PieceMoves] | None:
            if moves is None:
                return None
            return [pm.to_piece_moves() for pm in moves]

        return ChessGame(self.board.to_board(), _load(self.white_moves), _load(self.black_moves))


# --- Views ---
class DuelSnapshot(BaseModel):
    """What viewers see of a duel."""

    id: DuelId
    board: BoardData
    white_player: Player | None = None
    black_player: Player | None = None
    ended: bool = False
    winner: Color | None = None
    end_reason: EndReason | None = None
    in_check: bool = False
    legal_moves: list[PieceMovesData] = Field(default_factory=list)
    move_count: int = 0
