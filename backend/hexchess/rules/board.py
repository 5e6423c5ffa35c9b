"""Board storage for hexagonal chess.

Pieces are stored in a ragged ``[file][rank]`` grid shaped like the board.
"""

from __future__ import annotations

from typing import Callable, Iterable

from hexchess.rules.errors import InvariantViolation
from hexchess.rules.types import (
    FILES,
    MAX_RANKS,
    ORDERED,
    PIECE_CHARS,
    RANKS_PER_FILE,
    Color,
    Hexagon,
    Piece,
    PieceMoves,
    is_white,
    king_of,
)

# Ranks a pawn starts on; any other rank (or file) means it has moved.
WHITE_PAWN_START_RANKS: dict[int, int] = {1: 0, 2: 1, 3: 2, 4: 3, 5: 4, 6: 3, 7: 2, 8: 1, 9: 0}
BLACK_PAWN_START_RANKS: dict[int, int] = {file: 6 for file in range(1, 10)}

INITIAL_LAYOUT: dict[str, Piece] = {
    # white
    "b1": Piece.WHITE_PAWN,
    "c2": Piece.WHITE_PAWN,
    "d3": Piece.WHITE_PAWN,
    "e4": Piece.WHITE_PAWN,
    "f5": Piece.WHITE_PAWN,
    "g4": Piece.WHITE_PAWN,
    "h3": Piece.WHITE_PAWN,
    "i2": Piece.WHITE_PAWN,
    "j1": Piece.WHITE_PAWN,
    "c1": Piece.WHITE_ROOK,
    "d1": Piece.WHITE_KNIGHT,
    "e1": Piece.WHITE_QUEEN,
    "f1": Piece.WHITE_BISHOP,
    "f2": Piece.WHITE_BISHOP,
    "f3": Piece.WHITE_BISHOP,
    "g1": Piece.WHITE_KING,
    "h1": Piece.WHITE_KNIGHT,
    "i1": Piece.WHITE_ROOK,
    # black
    "b7": Piece.BLACK_PAWN,
    "c7": Piece.BLACK_PAWN,
    "d7": Piece.BLACK_PAWN,
    "e7": Piece.BLACK_PAWN,
    "f7": Piece.BLACK_PAWN,
    "g7": Piece.BLACK_PAWN,
    "h7": Piece.BLACK_PAWN,
    "i7": Piece.BLACK_PAWN,
    "j7": Piece.BLACK_PAWN,
    "c8": Piece.BLACK_ROOK,
    "d9": Piece.BLACK_KNIGHT,
    "e10": Piece.BLACK_QUEEN,
    "f11": Piece.BLACK_BISHOP,
    "f10": Piece.BLACK_BISHOP,
    "f9": Piece.BLACK_BISHOP,
    "g10": Piece.BLACK_KING,
    "h9": Piece.BLACK_KNIGHT,
    "i8": Piece.BLACK_ROOK,
}


def _as_hex(hex: Hexagon | str) -> Hexagon:
    return Hexagon.from_notation(hex) if isinstance(hex, str) else hex


class Board:
    def __init__(self, turn: Color = Color.WHITE, pieces: list[list[int]] | None = None) -> None:
        if pieces is None:
            pieces = [[Piece.EMPTY] * n for n in RANKS_PER_FILE]
        elif [len(f) for f in pieces] != list(RANKS_PER_FILE):
            raise InvariantViolation(
                f"Board shape {[len(f) for f in pieces]} does not match {list(RANKS_PER_FILE)}"
            )
        self.pieces = pieces
        self.turn = turn

    @classmethod
    def empty(cls, turn: Color = Color.WHITE) -> Board:
        return cls(turn)

    @classmethod
    def initial(cls) -> Board:
        board = cls(Color.WHITE)
        for notation, piece in INITIAL_LAYOUT.items():
            board.set_piece(notation, piece)
        return board

    def copy(self) -> Board:
        return Board(self.turn, [list(f) for f in self.pieces])

    def get_piece(self, hex: Hexagon | str) -> int:
        hex = _as_hex(hex)
        return self.pieces[hex.file][hex.rank]

    def set_piece(self, hex: Hexagon | str, piece: int) -> Board:
        hex = _as_hex(hex)
        self.pieces[hex.file][hex.rank] = int(piece)
        return self

    def flip_turn(self) -> None:
        self.turn = self.turn.opposite()

    def find_king(self, color: Color) -> Hexagon:
        king = king_of(color)
        for hex in ORDERED:
            if self.pieces[hex.file][hex.rank] == king:
                return hex
        raise InvariantViolation(f"Board has no {color.name.lower()} king")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.turn == other.turn and self.pieces == other.pieces

    # ------------------------------------------------------------------ #
    #  Debug rendering
    # ------------------------------------------------------------------ #

    def render(self, marked: Callable[[Hexagon], bool] | None = None) -> str:
        """Draw the board one file per line, marking hexes with ``x``."""
        lines = [""]
        for file in range(FILES):
            ranks = RANKS_PER_FILE[file]
            cells = []
            for rank in range(ranks):
                hex = Hexagon(file, rank)
                if marked is not None and marked(hex):
                    cells.append("x")
                else:
                    cells.append(PIECE_CHARS[self.pieces[file][rank]])
            indent = "  " * (MAX_RANKS - ranks)
            lines.append(f"{chr(file + ord('a'))}   {indent}{'   '.join(cells)}")
        return "\n".join(lines) + "\n"

    def render_moves(self, moves: Iterable[Hexagon]) -> str:
        targets = set(moves)
        return self.render(lambda hex: hex in targets)

    def render_piece_moves(self, piece_moves: Iterable[PieceMoves]) -> str:
        targets = {m for pm in piece_moves for m in pm.moves}
        return self.render(lambda hex: hex in targets)

    def __str__(self) -> str:
        return self.render()


def has_pawn_moved(hex: Hexagon, piece: int) -> bool:
    """A pawn has moved once it leaves its color's starting rank for its file."""
    starts = WHITE_PAWN_START_RANKS if is_white(piece) else BLACK_PAWN_START_RANKS
    start_rank = starts.get(hex.file)
    if start_rank is None:
        return True
    return hex.rank != start_rank
