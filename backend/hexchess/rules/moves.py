"""Move generation for every piece type.

Generated moves ignore whether the mover's own king is left in check. The
only king-safety filtering is the ``not_attacked`` predicate accepted by
:func:`find_king_moves`, applied by :class:`hexchess.rules.game.ChessGame`.
"""

from __future__ import annotations

from typing import Callable, Sequence

from hexchess.rules.board import Board, has_pawn_moved
from hexchess.rules.errors import InvariantViolation
from hexchess.rules.types import (
    ORDERED,
    Color,
    Direction,
    Hexagon,
    Piece,
    PieceMoves,
    are_opposite,
    in_bounds,
    is_king,
    is_piece_turn,
    walk,
)

Offsets = Sequence[Sequence[Direction]]

ROOK_OFFSETS: Offsets = (
    (Direction.UP,),
    (Direction.DOWN,),
    (Direction.DOWN_LEFT,),
    (Direction.DOWN_RIGHT,),
    (Direction.UP_LEFT,),
    (Direction.UP_RIGHT,),
)

# Two steps per diagonal: a hex diagonal runs between two neighbouring files.
BISHOP_OFFSETS: Offsets = (
    (Direction.UP_RIGHT, Direction.DOWN_RIGHT),
    (Direction.UP_LEFT, Direction.DOWN_LEFT),
    (Direction.UP, Direction.UP_RIGHT),
    (Direction.UP, Direction.UP_LEFT),
    (Direction.DOWN, Direction.DOWN_RIGHT),
    (Direction.DOWN, Direction.DOWN_LEFT),
)

KING_OFFSETS: Offsets = (*ROOK_OFFSETS, *BISHOP_OFFSETS)

KNIGHT_OFFSETS: Offsets = (
    (Direction.UP_RIGHT, Direction.UP_RIGHT, Direction.UP),
    (Direction.UP_RIGHT, Direction.UP, Direction.UP),
    (Direction.DOWN_RIGHT, Direction.DOWN_RIGHT, Direction.DOWN),
    (Direction.DOWN_RIGHT, Direction.DOWN, Direction.DOWN),
    (Direction.UP_LEFT, Direction.UP_LEFT, Direction.UP),
    (Direction.UP_LEFT, Direction.UP, Direction.UP),
    (Direction.DOWN_LEFT, Direction.DOWN_LEFT, Direction.DOWN),
    (Direction.DOWN_LEFT, Direction.DOWN, Direction.DOWN),
    (Direction.UP_LEFT, Direction.UP_LEFT, Direction.DOWN_LEFT),
    (Direction.DOWN_LEFT, Direction.DOWN_LEFT, Direction.UP_LEFT),
    (Direction.UP_RIGHT, Direction.UP_RIGHT, Direction.DOWN_RIGHT),
    (Direction.DOWN_RIGHT, Direction.DOWN_RIGHT, Direction.UP_RIGHT),
)

PAWN_AHEAD: dict[Color, tuple[Direction, ...]] = {
    Color.WHITE: (Direction.UP,),
    Color.BLACK: (Direction.DOWN,),
}
PAWN_CAPTURES: dict[Color, tuple[tuple[Direction, ...], ...]] = {
    Color.WHITE: ((Direction.UP_LEFT,), (Direction.UP_RIGHT,)),
    Color.BLACK: ((Direction.DOWN_LEFT,), (Direction.DOWN_RIGHT,)),
}


def _always(hex: Hexagon) -> bool:
    return True


def find_moves_by_traveling(board: Board, hex: Hexagon, offsets: Offsets) -> list[Hexagon]:
    """Slide along each offset until leaving the board or hitting a piece."""
    base_piece = board.get_piece(hex)
    moves: list[Hexagon] = []

    for offset in offsets:
        move = hex
        while True:
            move = walk(move, offset)
            if not in_bounds(move):
                break

            piece = board.get_piece(move)
            if piece == Piece.EMPTY:
                moves.append(move)
                continue

            if are_opposite(piece, base_piece):
                moves.append(move)
            break

    return moves


def find_offset_moves(
    board: Board,
    hex: Hexagon,
    offsets: Offsets,
    can_move_to: Callable[[Hexagon], bool] = _always,
) -> list[Hexagon]:
    """Jump once along each offset onto an empty or opponent hex."""
    base_piece = board.get_piece(hex)
    moves: list[Hexagon] = []

    for offset in offsets:
        move = walk(hex, offset)
        if not in_bounds(move):
            continue

        piece = board.get_piece(move)
        if piece != Piece.EMPTY and not are_opposite(base_piece, piece):
            continue
        if can_move_to(move):
            moves.append(move)

    return moves


def find_rook_moves(board: Board, hex: Hexagon) -> PieceMoves:
    return PieceMoves(hex, find_moves_by_traveling(board, hex, ROOK_OFFSETS))


def find_bishop_moves(board: Board, hex: Hexagon) -> PieceMoves:
    return PieceMoves(hex, find_moves_by_traveling(board, hex, BISHOP_OFFSETS))


def find_queen_moves(board: Board, hex: Hexagon) -> PieceMoves:
    return PieceMoves(hex, find_moves_by_traveling(board, hex, KING_OFFSETS))


def find_knight_moves(board: Board, hex: Hexagon) -> PieceMoves:
    return PieceMoves(hex, find_offset_moves(board, hex, KNIGHT_OFFSETS))


def find_king_moves(
    board: Board,
    hex: Hexagon,
    not_attacked: Callable[[Hexagon], bool] = _always,
) -> list[Hexagon]:
    """All king steps, optionally excluding hexes the predicate rejects.

    A hex holding the other king is never a target.
    """

    def can_move_to(move: Hexagon) -> bool:
        return not is_king(board.get_piece(move)) and not_attacked(move)

    return find_offset_moves(board, hex, KING_OFFSETS, can_move_to)


def find_pawn_moves(board: Board, hex: Hexagon, color: Color) -> PieceMoves:
    base_piece = board.get_piece(hex)
    moves: list[Hexagon] = []

    # one ahead; two ahead from the start rank only needs the target empty
    ahead = PAWN_AHEAD[color]
    move1 = walk(hex, ahead)
    if in_bounds(move1) and board.get_piece(move1) == Piece.EMPTY:
        moves.append(move1)

    move2 = walk(move1, ahead)
    if (
        in_bounds(move2)
        and not has_pawn_moved(hex, base_piece)
        and board.get_piece(move2) == Piece.EMPTY
    ):
        moves.append(move2)

    # diagonal captures only onto opponents
    for offset in PAWN_CAPTURES[color]:
        take = walk(hex, offset)
        if not in_bounds(take):
            continue
        piece = board.get_piece(take)
        if piece != Piece.EMPTY and are_opposite(base_piece, piece):
            moves.append(take)

    return PieceMoves(hex, moves)


def find_piece_moves(board: Board, color: Color) -> list[PieceMoves]:
    """Moves for every piece of ``color`` except the king."""
    moves: list[PieceMoves] = []
    for hex in ORDERED:
        piece = board.get_piece(hex)
        if not is_piece_turn(piece, color):
            continue

        if piece in (Piece.WHITE_ROOK, Piece.BLACK_ROOK):
            moves.append(find_rook_moves(board, hex))
        elif piece in (Piece.WHITE_BISHOP, Piece.BLACK_BISHOP):
            moves.append(find_bishop_moves(board, hex))
        elif piece in (Piece.WHITE_QUEEN, Piece.BLACK_QUEEN):
            moves.append(find_queen_moves(board, hex))
        elif piece in (Piece.WHITE_KNIGHT, Piece.BLACK_KNIGHT):
            moves.append(find_knight_moves(board, hex))
        elif piece in (Piece.WHITE_PAWN, Piece.BLACK_PAWN):
            moves.append(find_pawn_moves(board, hex, color))
        elif piece in (Piece.WHITE_KING, Piece.BLACK_KING):
            continue  # kings are handled by ChessGame
        else:
            raise InvariantViolation(f"Board has invalid piece {piece} at hexagon {hex}")
    return moves
