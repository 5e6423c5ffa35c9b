from __future__ import annotations

import asyncio
import logging
import random
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Callable

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from hexchess.engine.duel_store import DuelStoreProtocol
    from hexchess.ws.broadcaster import Broadcaster

from hexchess.engine.duel import Duel
from hexchess.engine.errors import DuelNotFoundError
from hexchess.engine.history_store import HistoryStore
from hexchess.engine.models import ColorPreference, DuelId, MoveModel, Player
from hexchess.rules.types import Color
from hexchess.ws.messages import ServerMessage, ServerMessageType

logger = logging.getLogger(__name__)


class DuelService:
    """
    Orchestrates duels: load from the store, mutate, store, broadcast.

    Each load-mutate-store cycle runs under a per-duel ``asyncio.Lock``, so
    two requests for the same duel in this process never interleave. The lock
    is process-local; two processes writing the same duel concurrently is
    resolved by whichever ``put`` reaches Redis last.

    Broadcasts happen after the lock is released. When a duel ends its result
    is written to the history store; failures there are logged and do not
    fail the request.
    """

    def __init__(
        self,
        store: DuelStoreProtocol,
        broadcaster: Broadcaster,
        db_session_factory: Callable[[], AsyncSession] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._broadcaster = broadcaster
        self._db_session_factory = db_session_factory
        self._rng = rng
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _locked(self, duel_id: str) -> AsyncIterator[None]:
        """Hold the duel's lock; the entry is dropped once nobody holds or waits on it."""
        lock = self._locks.get(duel_id)
        if lock is None:
            lock = self._locks[duel_id] = asyncio.Lock()
        self._lock_users[duel_id] = self._lock_users.get(duel_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[duel_id] -= 1
            if self._lock_users[duel_id] == 0:
                del self._lock_users[duel_id]
                del self._locks[duel_id]

    async def _load(self, duel_id: DuelId) -> Duel:
        duel = await self._store.get(duel_id)
        if duel is None:
            raise DuelNotFoundError(f"Duel {duel_id} not found")
        return duel

    # ------------------------------------------------------------------ #
    #  Queries
    # ------------------------------------------------------------------ #

    async def create(self, color_preference: ColorPreference = ColorPreference.RANDOM) -> DuelId:
        duel_id = DuelId(str(uuid.uuid4()))
        duel = Duel.start(duel_id, color_preference)
        await self._store.put(duel)
        logger.info(f"Created duel {duel_id} (preference: {color_preference.value})")
        return duel_id

    async def get(self, duel_id: DuelId) -> Duel:
        return await self._load(duel_id)

    async def list_ids(
        self, cursor: float | None = None, count: int = 20
    ) -> tuple[float | None, list[DuelId]]:
        return await self._store.scan_ids(cursor, count)

    # ------------------------------------------------------------------ #
    #  Commands
    # ------------------------------------------------------------------ #

    async def join(self, duel_id: DuelId, player: Player) -> Color | None:
        """Seat ``player`` if a slot is free and tell every viewer."""
        async with self._locked(duel_id):
            duel = await self._load(duel_id)
            color = duel.join(player, self._rng)
            await self._store.put(duel)

        await self._broadcaster.broadcast(
            duel_id,
            ServerMessage(type=ServerMessageType.JOIN, player=player, session=duel.snapshot()),
        )
        return color

    async def make_move(self, duel_id: DuelId, player: Player, move: MoveModel) -> Duel:
        """
        Apply ``move`` for ``player`` and broadcast the new position.

        ``InvalidMoveError`` subclasses propagate to the caller unchanged and
        leave the stored duel untouched.
        """
        async with self._locked(duel_id):
            duel = await self._load(duel_id)
            duel.make_move(player, move)
            await self._store.put(duel)

        await self._broadcaster.broadcast(
            duel_id,
            ServerMessage(
                type=ServerMessageType.MOVE,
                player=player,
                move=move,
                session=duel.snapshot(),
            ),
        )
        if duel.ended:
            await self._record_history(duel)
        return duel

    async def forfeit(self, duel_id: DuelId, player: Player) -> Duel:
        async with self._locked(duel_id):
            duel = await self._load(duel_id)
            duel.forfeit(player)
            await self._store.put(duel)

        await self._broadcaster.broadcast(
            duel_id,
            ServerMessage(type=ServerMessageType.FORFEIT, player=player, session=duel.snapshot()),
        )
        await self._record_history(duel)
        return duel

    async def _record_history(self, duel: Duel) -> None:
        if self._db_session_factory is None:
            logger.warning(f"No db_session_factory for duel {duel.id}, skipping history")
            return

        try:
            async with self._db_session_factory() as db_session:
                await HistoryStore(db_session).record(duel)
                await db_session.commit()
            logger.info(f"Recorded history for duel {duel.id}")
        except Exception as e:
            logger.error(f"Failed to record history for duel {duel.id}: {e}", exc_info=True)
