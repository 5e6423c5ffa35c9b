"""Tests for board storage and the starting layout."""

from __future__ import annotations

import pytest

from hexchess.rules.board import Board, has_pawn_moved
from hexchess.rules.errors import InvariantViolation
from hexchess.rules.types import Color, Hexagon, Piece, PieceMoves


class TestBoard:
    def test_empty_board(self) -> None:
        board = Board.empty()
        assert board.turn == Color.WHITE
        assert [len(f) for f in board.pieces] == [6, 7, 8, 9, 10, 11, 10, 9, 8, 7, 6]
        assert all(p == Piece.EMPTY for f in board.pieces for p in f)

    def test_bad_shape_rejected(self) -> None:
        with pytest.raises(InvariantViolation):
            Board(Color.WHITE, [[0] * 6 for _ in range(11)])

    def test_get_and_set_by_notation(self) -> None:
        board = Board.empty().set_piece("f6", Piece.WHITE_ROOK).set_piece(Hexagon(0, 0), Piece.BLACK_PAWN)
        assert board.get_piece("f6") == Piece.WHITE_ROOK
        assert board.get_piece(Hexagon(5, 5)) == Piece.WHITE_ROOK
        assert board.get_piece("a1") == Piece.BLACK_PAWN

    def test_flip_turn(self) -> None:
        board = Board.empty()
        board.flip_turn()
        assert board.turn == Color.BLACK
        board.flip_turn()
        assert board.turn == Color.WHITE

    def test_copy_is_independent(self) -> None:
        board = Board.initial()
        clone = board.copy()
        assert clone == board
        clone.set_piece("f6", Piece.WHITE_QUEEN)
        assert board.get_piece("f6") == Piece.EMPTY
        assert clone != board

    def test_find_king(self) -> None:
        board = Board.initial()
        assert board.find_king(Color.WHITE).notation == "g1"
        assert board.find_king(Color.BLACK).notation == "g10"

    def test_missing_king_raises(self) -> None:
        board = Board.empty().set_piece("g1", Piece.WHITE_KING)
        with pytest.raises(InvariantViolation, match="no black king"):
            board.find_king(Color.BLACK)


class TestInitialLayout:
    def test_piece_counts(self) -> None:
        board = Board.initial()
        flat = [p for f in board.pieces for p in f]
        assert flat.count(Piece.WHITE_PAWN) == 9
        assert flat.count(Piece.BLACK_PAWN) == 9
        assert flat.count(Piece.WHITE_BISHOP) == 3
        assert flat.count(Piece.BLACK_BISHOP) == 3
        assert flat.count(Piece.WHITE_KING) == 1
        assert flat.count(Piece.BLACK_KING) == 1
        assert sum(1 for p in flat if p != Piece.EMPTY) == 36

    def test_white_to_move(self) -> None:
        assert Board.initial().turn == Color.WHITE

    def test_spot_checks(self) -> None:
        board = Board.initial()
        assert board.get_piece("e1") == Piece.WHITE_QUEEN
        assert board.get_piece("e10") == Piece.BLACK_QUEEN
        assert board.get_piece("f11") == Piece.BLACK_BISHOP
        assert board.get_piece("c8") == Piece.BLACK_ROOK
        assert board.get_piece("h1") == Piece.WHITE_KNIGHT


class TestPawnMoved:
    @pytest.mark.parametrize("notation", ["b1", "c2", "d3", "e4", "f5", "g4", "h3", "i2", "j1"])
    def test_white_start_ranks(self, notation: str) -> None:
        assert not has_pawn_moved(Hexagon.from_notation(notation), Piece.WHITE_PAWN)

    @pytest.mark.parametrize("notation", ["b7", "c7", "d7", "e7", "f7", "g7", "h7", "i7", "j7"])
    def test_black_start_ranks(self, notation: str) -> None:
        assert not has_pawn_moved(Hexagon.from_notation(notation), Piece.BLACK_PAWN)

    def test_moved_pawns(self) -> None:
        assert has_pawn_moved(Hexagon.from_notation("f6"), Piece.WHITE_PAWN)
        assert has_pawn_moved(Hexagon.from_notation("e6"), Piece.BLACK_PAWN)

    def test_edge_files_count_as_moved(self) -> None:
        assert has_pawn_moved(Hexagon.from_notation("a1"), Piece.WHITE_PAWN)
        assert has_pawn_moved(Hexagon.from_notation("k6"), Piece.BLACK_PAWN)


class TestRender:
    def test_render_initial(self) -> None:
        text = Board.initial().render()
        lines = text.strip("\n").split("\n")
        assert len(lines) == 11
        assert "K" in lines[6]
        assert "k" in lines[6]

    def test_render_marks_moves(self) -> None:
        text = Board.empty().render_moves([Hexagon.from_notation("f6")])
        assert text.count("x") == 1

    def test_render_marks_piece_moves(self) -> None:
        piece_moves = [PieceMoves(Hexagon.from_notation("f5"), [Hexagon.from_notation("f6")])]
        text = Board.initial().render_piece_moves(piece_moves)
        assert text.count("x") == 1
