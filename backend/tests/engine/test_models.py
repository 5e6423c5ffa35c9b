"""Tests for engine models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from hexchess.engine.models import (
    BoardData,
    GameData,
    MoveModel,
    PieceMovesData,
    Player,
    PlayerId,
)
from hexchess.rules.board import Board
from hexchess.rules.errors import InvariantViolation
from hexchess.rules.game import ChessGame
from hexchess.rules.types import Color, Hexagon, Move, PieceMoves


class TestPlayer:
    def test_equality_by_id(self) -> None:
        a = Player(id=PlayerId("p1"), name="Alice")
        b = Player(id=PlayerId("p1"), name="Someone else")
        c = Player(id=PlayerId("p2"), name="Alice")
        assert a == b
        assert a != c
        assert len({a, b, c}) == 2


class TestMoveModel:
    def test_from_alias(self) -> None:
        move = MoveModel.model_validate({"from": "f5", "to": "f6"})
        assert move.from_ == "f5"
        assert move.to_move() == Move(Hexagon(5, 4), Hexagon(5, 5))

    def test_dump_uses_alias(self) -> None:
        move = MoveModel.model_validate({"from": "F5", "to": "f6"})
        assert move.model_dump(by_alias=True) == {"from": "f5", "to": "f6"}

    def test_from_move(self) -> None:
        move = MoveModel.from_move(Move.from_notation("a1", "k6"))
        assert (move.from_, move.to) == ("a1", "k6")

    @pytest.mark.parametrize("bad", ["z1", "f12", "a7", "", "ff"])
    def test_rejects_bad_hexagons(self, bad: str) -> None:
        with pytest.raises(ValidationError):
            MoveModel.model_validate({"from": bad, "to": "f6"})


class TestGameData:
    def test_board_round_trip(self) -> None:
        board = Board.initial()
        data = BoardData.model_validate_json(BoardData.from_board(board).model_dump_json())
        assert data.turn == Color.WHITE
        assert data.to_board() == board

    def test_turn_serialized_as_int(self) -> None:
        board = Board.initial()
        board.flip_turn()
        assert BoardData.from_board(board).model_dump(mode="json")["turn"] == 0

    def test_bad_board_shape(self) -> None:
        data = BoardData(turn=Color.WHITE, pieces=[[0] * 3])
        with pytest.raises(InvariantViolation):
            data.to_board()

    def test_game_round_trip_keeps_move_lists(self) -> None:
        game = ChessGame.start()
        data = GameData.model_validate_json(GameData.from_game(game).model_dump_json())
        assert data.to_game() == game

    def test_game_without_move_lists(self) -> None:
        game = ChessGame(Board.initial())
        restored = GameData.from_game(game).to_game()
        assert not restored.has_piece_moves

    def test_piece_moves_data(self) -> None:
        pm = PieceMoves(Hexagon(5, 4), [Hexagon(5, 5)])
        data = PieceMovesData.from_piece_moves(pm)
        assert data.hex == "f5"
        assert data.moves == ["f6"]
        assert data.to_piece_moves() == pm
