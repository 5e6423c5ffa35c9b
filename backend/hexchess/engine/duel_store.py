from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from hexchess.engine.duel import Duel
from hexchess.engine.models import DuelId

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 3600.0


class DuelStoreProtocol(Protocol):
    """Protocol for hot duel persistence (Redis)."""

    async def get(self, duel_id: DuelId) -> Duel | None:
        """Load a duel, or None if it does not exist or has expired."""
        ...

    async def put(self, duel: Duel) -> None:
        """Save a duel and refresh its touch time."""
        ...

    async def scan_ids(
        self, cursor: float | None = None, count: int = 20
    ) -> tuple[float | None, list[DuelId]]:
        """Page through live duel ids, oldest touch first."""
        ...

    async def expire(self, max_age: float | None = None) -> int:
        """Delete duels not touched within ``max_age`` seconds."""
        ...


class DuelStore:
    """
    Redis-backed duel store.

    Each duel is a JSON value under ``duel:{id}``. The ``duels`` sorted set
    indexes every id by the wall-clock time it was last written, which drives
    both paging and expiry.
    """

    KEY_PREFIX = "duel:"
    INDEX_KEY = "duels"

    def __init__(
        self,
        redis_client,
        max_age: float = DEFAULT_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.redis = redis_client
        self.max_age = max_age
        self._clock = clock

    def _key(self, duel_id: str) -> str:
        return f"{self.KEY_PREFIX}{duel_id}"

    async def get(self, duel_id: DuelId) -> Duel | None:
        await self.expire()
        data = await self.redis.get(self._key(duel_id))
        if data is None:
            return None
        return Duel.model_validate_json(data)

    async def put(self, duel: Duel) -> None:
        duel.touched = self._clock()
        value = duel.model_dump_json()
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(self._key(duel.id), value)
            pipe.zadd(self.INDEX_KEY, {duel.id: duel.touched})
            await pipe.execute()

    async def scan_ids(
        self, cursor: float | None = None, count: int = 20
    ) -> tuple[float | None, list[DuelId]]:
        """
        Return up to ``count`` ids touched at or after ``cursor``.

        One extra entry is fetched; its score becomes the next cursor, so a
        ``None`` cursor in the result means there are no more pages.
        """
        await self.expire()
        low = "-inf" if cursor is None else cursor
        rows = await self.redis.zrangebyscore(
            self.INDEX_KEY, low, "+inf", start=0, num=count + 1, withscores=True
        )
        ids = [DuelId(_decode(member)) for member, _ in rows[:count]]
        next_cursor = float(rows[count][1]) if len(rows) > count else None
        return next_cursor, ids

    async def expire(self, max_age: float | None = None) -> int:
        if max_age is None:
            max_age = self.max_age
        cutoff = self._clock() - max_age
        stale = await self.redis.zrangebyscore(self.INDEX_KEY, "-inf", cutoff)
        if not stale:
            return 0

        ids = [_decode(member) for member in stale]
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(*[self._key(duel_id) for duel_id in ids])
            pipe.zrem(self.INDEX_KEY, *ids)
            await pipe.execute()
        logger.info(f"Expired {len(ids)} stale duels")
        return len(ids)


def _decode(value: str | bytes) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value
