"""A board plus the cached legal-move lists for both colors."""

from __future__ import annotations

import logging

from hexchess.rules.board import Board
from hexchess.rules.check import (
    find_attacking,
    is_attacked,
    is_check,
    is_checkmate,
    mark_king_reach,
)
from hexchess.rules.errors import InvariantViolation
from hexchess.rules.moves import find_king_moves, find_piece_moves
from hexchess.rules.types import Color, Hexagon, Move, Piece, PieceMoves

logger = logging.getLogger(__name__)


class ChessGame:
    """
    Owns a board and the move lists derived from it.

    Move lists are dropped on every mutation and rebuilt by
    :meth:`init_piece_moves`. Each list holds one entry per non-king piece,
    followed by the king's entry as the last element.
    """

    def __init__(
        self,
        board: Board,
        white_moves: list[PieceMoves] | None = None,
        black_moves: list[PieceMoves] | None = None,
    ) -> None:
        self.board = board
        self.white_moves = white_moves
        self.black_moves = black_moves

    @classmethod
    def start(cls) -> ChessGame:
        game = cls(Board.initial())
        game.init_piece_moves()
        return game

    @classmethod
    def empty(cls) -> ChessGame:
        return cls(Board.empty())

    def set_piece(self, hex: Hexagon | str, piece: int) -> ChessGame:
        self.board.set_piece(hex, piece)
        self.invalidate()
        return self

    def copy(self) -> ChessGame:
        def _copy(moves: list[PieceMoves] | None) -> list[PieceMoves] | None:
            if moves is None:
                return None
            return [PieceMoves(pm.hex, list(pm.moves)) for pm in moves]

        return ChessGame(self.board.copy(), _copy(self.white_moves), _copy(self.black_moves))

    # ------------------------------------------------------------------ #
    #  Move lists
    # ------------------------------------------------------------------ #

    @property
    def has_piece_moves(self) -> bool:
        return self.white_moves is not None and self.black_moves is not None

    def invalidate(self) -> None:
        self.white_moves = None
        self.black_moves = None

    def get_piece_moves(self, color: Color) -> list[PieceMoves]:
        moves = self.white_moves if color.is_white else self.black_moves
        if moves is None:
            raise InvariantViolation(
                f"{color.name.lower()} moves requested before init_piece_moves"
            )
        return moves

    def current_moves(self) -> list[PieceMoves]:
        return self.get_piece_moves(self.board.turn)

    def opposite_moves(self) -> list[PieceMoves]:
        return self.get_piece_moves(self.board.turn.opposite())

    def init_piece_moves(self) -> None:
        """Rebuild both colors' move lists from the current board."""
        board = self.board
        white_moves = find_piece_moves(board, Color.WHITE)
        black_moves = find_piece_moves(board, Color.BLACK)

        white_king = board.find_king(Color.WHITE)
        black_king = board.find_king(Color.BLACK)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Rebuilding moves, {board.turn.name.lower()} to move:\n{board.render()}")

        # kings may not step onto a hex the other side attacks or next to the other king
        white_attacked = mark_king_reach(find_attacking(board, white_moves), white_king)
        black_attacked = mark_king_reach(find_attacking(board, black_moves), black_king)
        white_king_moves = PieceMoves(
            white_king,
            find_king_moves(board, white_king, lambda h: not is_attacked(black_attacked, h)),
        )
        black_king_moves = PieceMoves(
            black_king,
            find_king_moves(board, black_king, lambda h: not is_attacked(white_attacked, h)),
        )

        if board.turn.is_white:
            current, king_hex, attacked_by_opponent = white_moves, white_king, black_attacked
        else:
            current, king_hex, attacked_by_opponent = black_moves, black_king, white_attacked

        # TODO: keep moves that block the check instead of clearing everything
        if is_attacked(attacked_by_opponent, king_hex):
            logger.debug(f"{board.turn.name.lower()} is in check, only king moves remain")
            current.clear()

        white_moves.append(white_king_moves)
        black_moves.append(black_king_moves)
        self.white_moves = white_moves
        self.black_moves = black_moves

    def king_moves(self, color: Color) -> PieceMoves:
        return self.get_piece_moves(color)[-1]

    # ------------------------------------------------------------------ #
    #  Play
    # ------------------------------------------------------------------ #

    def is_valid_move(self, move: Move) -> bool:
        """True if ``move`` is in the cached list of the side to move."""
        for pm in self.current_moves():
            if pm.hex == move.from_hex:
                return move.to_hex in pm.moves
        return False

    def make_move(self, move: Move) -> None:
        """Move the piece, flip the turn and rebuild the move lists."""
        piece = self.board.get_piece(move.from_hex)
        self.board.set_piece(move.from_hex, Piece.EMPTY)
        self.board.set_piece(move.to_hex, piece)
        self.board.flip_turn()
        self.invalidate()
        self.init_piece_moves()

    def is_check(self) -> bool:
        return is_check(self.board, self.board.turn, self.opposite_moves())

    def is_checkmate(self) -> bool:
        return is_checkmate(self.board, self.opposite_moves())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChessGame):
            return NotImplemented
        return (
            self.board == other.board
            and self.white_moves == other.white_moves
            and self.black_moves == other.black_moves
        )
