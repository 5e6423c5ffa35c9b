"""Attack maps, check and checkmate detection."""

from __future__ import annotations

from hexchess.rules.board import Board
from hexchess.rules.moves import KING_OFFSETS, find_king_moves
from hexchess.rules.types import RANKS_PER_FILE, Color, Hexagon, PieceMoves, in_bounds, is_pawn, walk

AttackMap = list[list[bool]]


def empty_attack_map() -> AttackMap:
    return [[False] * n for n in RANKS_PER_FILE]


def find_attacking(board: Board, piece_moves: list[PieceMoves]) -> AttackMap:
    """Mark every hex some piece in ``piece_moves`` can capture on.

    A pawn moving straight ahead along its file cannot capture, so those
    targets are skipped.
    """
    attacked = empty_attack_map()
    for pm in piece_moves:
        pawn = is_pawn(board.get_piece(pm.hex))
        for move in pm.moves:
            if pawn and move.file == pm.hex.file:
                continue
            attacked[move.file][move.rank] = True
    return attacked


def mark_king_reach(attacked: AttackMap, king_hex: Hexagon) -> AttackMap:
    """Mark every hex one king step from ``king_hex``, occupied or not."""
    for offset in KING_OFFSETS:
        move = walk(king_hex, offset)
        if in_bounds(move):
            attacked[move.file][move.rank] = True
    return attacked


def is_attacked(attacked: AttackMap, hex: Hexagon) -> bool:
    return attacked[hex.file][hex.rank]


def is_check(board: Board, color: Color, opponent_moves: list[PieceMoves]) -> bool:
    king_hex = board.find_king(color)
    return is_attacked(find_attacking(board, opponent_moves), king_hex)


def is_checkmate(board: Board, opponent_moves: list[PieceMoves]) -> bool:
    """True if the side to move is in check and every king step is attacked.

    Interposing a piece or capturing the checking piece is not considered,
    so some positions with a defence are still reported as mate.
    """
    color = board.turn
    king_hex = board.find_king(color)
    attacked = find_attacking(board, opponent_moves)

    if not is_attacked(attacked, king_hex):
        return False

    # TODO: account for blocking moves and captures of the checking piece
    return all(is_attacked(attacked, move) for move in find_king_moves(board, king_hex))
