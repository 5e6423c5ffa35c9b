"""Geometry and core value types for hexagonal chess.

The board is a hexagon of 91 hexagons laid out in 11 files (``a``..``k``).
Files grow from 6 to 11 cells towards the midpoint file ``f`` and shrink back
to 6, so a step between two files changes the rank differently depending on
which side of the midpoint the step starts from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum

FILES = 11
MAX_RANKS = 11
MIDPOINT = 5
RANKS_PER_FILE: tuple[int, ...] = (6, 7, 8, 9, 10, 11, 10, 9, 8, 7, 6)


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    UP_LEFT = "up_left"
    UP_RIGHT = "up_right"
    DOWN_LEFT = "down_left"
    DOWN_RIGHT = "down_right"


class Color(IntEnum):
    BLACK = 0
    WHITE = 1

    def opposite(self) -> Color:
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def is_white(self) -> bool:
        return self is Color.WHITE


def ranks_for_file(file: int) -> int:
    return RANKS_PER_FILE[file]


@dataclass(frozen=True, order=True)
class Hexagon:
    file: int
    rank: int

    @classmethod
    def from_notation(cls, notation: str) -> Hexagon:
        """Parse ``"f9"`` into ``Hexagon(5, 8)``.

        The rank is not bounds-checked; use :func:`in_bounds` for that.
        """
        notation = notation.strip().lower()
        if len(notation) < 2 or not "a" <= notation[0] <= "k":
            raise ValueError(f"Invalid hexagon notation: {notation!r}")
        try:
            rank = int(notation[1:]) - 1
        except ValueError as e:
            raise ValueError(f"Invalid hexagon notation: {notation!r}") from e
        return cls(ord(notation[0]) - ord("a"), rank)

    @property
    def notation(self) -> str:
        return f"{chr(self.file + ord('a'))}{self.rank + 1}"

    def walk(self, *directions: Direction) -> Hexagon:
        return walk(self, directions)

    def __str__(self) -> str:
        return self.notation


def walk(hex: Hexagon, directions: tuple[Direction, ...] | list[Direction]) -> Hexagon:
    """Apply each direction in order. The result may be off the board."""
    file, rank = hex.file, hex.rank
    for direction in directions:
        if direction is Direction.UP:
            rank += 1
        elif direction is Direction.DOWN:
            rank -= 1
        elif direction is Direction.UP_LEFT:
            rank += 0 if file <= MIDPOINT else 1
            file -= 1
        elif direction is Direction.DOWN_LEFT:
            rank += -1 if file <= MIDPOINT else 0
            file -= 1
        elif direction is Direction.UP_RIGHT:
            rank += 1 if file < MIDPOINT else 0
            file += 1
        elif direction is Direction.DOWN_RIGHT:
            rank += 0 if file < MIDPOINT else -1
            file += 1
    return Hexagon(file, rank)


def in_bounds(hex: Hexagon) -> bool:
    return 0 <= hex.file < FILES and 0 <= hex.rank < RANKS_PER_FILE[hex.file]


# All 91 playable hexagons, file-major.
ORDERED: tuple[Hexagon, ...] = tuple(
    Hexagon(file, rank)
    for file in range(FILES)
    for rank in range(RANKS_PER_FILE[file])
)


# --- Pieces ---
# White pieces are odd, black pieces are even.
class Piece(IntEnum):
    EMPTY = 0
    WHITE_PAWN = 1
    BLACK_PAWN = 2
    WHITE_KNIGHT = 3
    BLACK_KNIGHT = 4
    WHITE_BISHOP = 5
    BLACK_BISHOP = 6
    WHITE_ROOK = 7
    BLACK_ROOK = 8
    WHITE_QUEEN = 9
    BLACK_QUEEN = 10
    WHITE_KING = 11
    BLACK_KING = 12


PIECE_CHARS: dict[int, str] = {
    Piece.EMPTY: ".",
    Piece.WHITE_PAWN: "P",
    Piece.BLACK_PAWN: "p",
    Piece.WHITE_KNIGHT: "N",
    Piece.BLACK_KNIGHT: "n",
    Piece.WHITE_BISHOP: "B",
    Piece.BLACK_BISHOP: "b",
    Piece.WHITE_ROOK: "R",
    Piece.BLACK_ROOK: "r",
    Piece.WHITE_QUEEN: "Q",
    Piece.BLACK_QUEEN: "q",
    Piece.WHITE_KING: "K",
    Piece.BLACK_KING: "k",
}


def is_white(piece: int) -> bool:
    return piece % 2 == 1


def are_opposite(piece1: int, piece2: int) -> bool:
    return piece1 % 2 != piece2 % 2


def is_same_color(piece1: int, piece2: int) -> bool:
    return piece1 % 2 == piece2 % 2


def is_piece_turn(piece: int, color: Color) -> bool:
    return piece != Piece.EMPTY and is_white(piece) == color.is_white


def is_pawn(piece: int) -> bool:
    return piece in (Piece.WHITE_PAWN, Piece.BLACK_PAWN)


def is_king(piece: int) -> bool:
    return piece in (Piece.WHITE_KING, Piece.BLACK_KING)


def king_of(color: Color) -> Piece:
    return Piece.WHITE_KING if color.is_white else Piece.BLACK_KING


# Far-edge rank per file for each color; a pawn there could promote.
_WHITE_PROMOTION_RANK = tuple(n - 1 for n in RANKS_PER_FILE)


def can_promote(hex: Hexagon, piece: int) -> bool:
    """True if a pawn on ``hex`` stands on the far edge for its color."""
    if not is_pawn(piece) or not in_bounds(hex):
        return False
    if is_white(piece):
        return hex.rank >= _WHITE_PROMOTION_RANK[hex.file]
    return hex.rank == 0


# --- Moves ---
@dataclass(frozen=True)
class Move:
    from_hex: Hexagon
    to_hex: Hexagon

    @classmethod
    def from_notation(cls, from_notation: str, to_notation: str) -> Move:
        return cls(Hexagon.from_notation(from_notation), Hexagon.from_notation(to_notation))

    def __str__(self) -> str:
        return f"{self.from_hex}-{self.to_hex}"


@dataclass
class PieceMoves:
    """Destination hexes for the piece standing on ``hex``."""

    hex: Hexagon
    moves: list[Hexagon] = field(default_factory=list)
