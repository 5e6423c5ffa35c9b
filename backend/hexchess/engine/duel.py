from __future__ import annotations

import logging
import random
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from hexchess.engine.errors import (
    GameNotActiveError,
    IllegalMoveError,
    InvalidMoveError,
    NotYourTurnError,
)
from hexchess.engine.models import (
    BoardData,
    ColorPreference,
    DuelId,
    DuelSnapshot,
    EndReason,
    GameData,
    MoveModel,
    PieceMovesData,
    Player,
)
from hexchess.rules.game import ChessGame
from hexchess.rules.types import Color

logger = logging.getLogger(__name__)


class Duel(BaseModel):
    """
    State machine for one match between two player slots.

    Lifecycle: empty -> one seat filled -> both seats filled (active) -> ended.
    Moves are rejected unless both seats are filled. An ended duel is never
    mutated again; the store expires it.

    The duel owns its game (board plus cached move lists). Players are
    referenced by value. There is no locking here: callers serialize access
    (see ``DuelService``).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: DuelId
    game: ChessGame
    white_player: Player | None = None
    black_player: Player | None = None
    ended: bool = False
    winner: Color | None = None
    end_reason: EndReason | None = None
    color_preference: ColorPreference = ColorPreference.RANDOM
    move_history: list[MoveModel] = Field(default_factory=list)
    touched: float = 0.0

    @field_validator("game", mode="before")
    @classmethod
    def _load_game(cls, value: Any) -> Any:
        if isinstance(value, ChessGame):
            return value
        return GameData.model_validate(value).to_game()

    @field_serializer("game")
    def _dump_game(self, game: ChessGame) -> dict:
        return GameData.from_game(game).model_dump(mode="json")

    @classmethod
    def start(
        cls,
        duel_id: DuelId,
        color_preference: ColorPreference = ColorPreference.RANDOM,
    ) -> Duel:
        """A fresh duel on the starting position with no players."""
        return cls(id=duel_id, game=ChessGame.start(), color_preference=color_preference)

    # ------------------------------------------------------------------ #
    #  Seats
    # ------------------------------------------------------------------ #

    @property
    def is_full(self) -> bool:
        return self.white_player is not None and self.black_player is not None

    def player_color(self, player: Player) -> Color | None:
        if self.white_player is not None and self.white_player == player:
            return Color.WHITE
        if self.black_player is not None and self.black_player == player:
            return Color.BLACK
        return None

    def player_for(self, color: Color) -> Player | None:
        return self.white_player if color.is_white else self.black_player

    def current_player(self) -> Player | None:
        return self.player_for(self.game.board.turn)

    def join(self, player: Player, rng: random.Random | None = None) -> Color | None:
        """
        Seat ``player`` and return their color.

        The first joiner takes the preferred color (or a random one), the
        second takes the remaining seat. A player who is already seated keeps
        their seat; anyone else joining a full duel is a spectator and gets
        ``None``. Never raises.
        """
        seated = self.player_color(player)
        if seated is not None:
            return seated

        if self.white_player is None and self.black_player is None:
            if self.color_preference == ColorPreference.WHITE:
                color = Color.WHITE
            elif self.color_preference == ColorPreference.BLACK:
                color = Color.BLACK
            else:
                color = (rng or random).choice([Color.WHITE, Color.BLACK])
        elif self.black_player is None:
            color = Color.BLACK
        elif self.white_player is None:
            color = Color.WHITE
        else:
            return None

        if color.is_white:
            self.white_player = player
        else:
            self.black_player = player
        logger.info(f"Player {player.id} joined duel {self.id} as {color.name.lower()}")
        return color

    def is_players_turn(self, player: Player) -> bool:
        if not self.is_full:
            return False
        current = self.current_player()
        return current is not None and current == player

    # ------------------------------------------------------------------ #
    #  Moves
    # ------------------------------------------------------------------ #

    def make_move(self, player: Player, move: MoveModel) -> None:
        """
        Validate and apply ``move`` for ``player``.

        Raises an ``InvalidMoveError`` subclass if the duel has ended, it is
        not the player's turn, or the move is not in the cached legal list.
        A checkmating move ends the duel with the mover as winner.
        """
        if self.ended:
            raise GameNotActiveError("Cannot make a move on a game that is over!", move)
        if not self.is_players_turn(player):
            raise NotYourTurnError("Cannot make a move when it isn't your turn!", move)

        game = self.game
        if not game.has_piece_moves:
            game.init_piece_moves()

        parsed = move.to_move()
        if not game.is_valid_move(parsed):
            raise IllegalMoveError("Cannot make an invalid move!", move)

        game.make_move(parsed)
        self.move_history.append(move)

        if game.is_checkmate():
            # the side that just moved delivered mate
            self._finish(game.board.turn.opposite(), EndReason.CHECKMATE)

    def forfeit(self, player: Player) -> None:
        """End the duel with ``player``'s opponent as winner."""
        if self.ended:
            raise GameNotActiveError("Cannot forfeit a game that is over!")
        color = self.player_color(player)
        if color is None:
            raise InvalidMoveError("Only a seated player can forfeit!")
        self._finish(color.opposite(), EndReason.FORFEIT)

    def _finish(self, winner: Color, reason: EndReason) -> None:
        self.ended = True
        self.winner = winner
        self.end_reason = reason
        logger.info(f"Duel {self.id} ended by {reason.value}, {winner.name.lower()} wins")

    # ------------------------------------------------------------------ #
    #  Views
    # ------------------------------------------------------------------ #

    def snapshot(self) -> DuelSnapshot:
        game = self.game
        legal_moves: list[PieceMovesData] = []
        in_check = False
        if game.has_piece_moves:
            in_check = game.is_check()
            if not self.ended:
                legal_moves = [
                    PieceMovesData.from_piece_moves(pm)
                    for pm in game.current_moves()
                    if pm.moves
                ]
        return DuelSnapshot(
            id=self.id,
            board=BoardData.from_board(game.board),
            white_player=self.white_player,
            black_player=self.black_player,
            ended=self.ended,
            winner=self.winner,
            end_reason=self.end_reason,
            in_check=in_check,
            legal_moves=legal_moves,
            move_count=len(self.move_history),
        )
