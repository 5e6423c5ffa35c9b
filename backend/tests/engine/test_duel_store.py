"""Tests for the Redis-backed duel store."""

from __future__ import annotations

import pytest

from hexchess.engine.duel import Duel
from hexchess.engine.models import DuelId, Player, PlayerId


def new_duel(duel_id: str) -> Duel:
    return Duel.start(DuelId(duel_id))


@pytest.mark.asyncio
class TestPutGet:
    async def test_put_then_get(self, duel_store, clock) -> None:
        duel = new_duel("d1")
        duel.join(Player(id=PlayerId("p1"), name="Alice"))
        await duel_store.put(duel)

        loaded = await duel_store.get(DuelId("d1"))
        assert loaded is not None
        assert loaded.id == "d1"
        assert loaded.game == duel.game
        assert loaded.touched == clock.now

    async def test_get_missing(self, duel_store) -> None:
        assert await duel_store.get(DuelId("nope")) is None

    async def test_put_writes_key_and_index(self, duel_store, test_redis, clock) -> None:
        await duel_store.put(new_duel("d1"))
        assert await test_redis.get("duel:d1") is not None
        assert test_redis._zsets["duels"] == {"d1": clock.now}

    async def test_put_refreshes_touch(self, duel_store, test_redis, clock) -> None:
        duel = new_duel("d1")
        await duel_store.put(duel)
        clock.advance(10)
        await duel_store.put(duel)
        assert duel.touched == clock.now
        assert test_redis._zsets["duels"]["d1"] == clock.now


@pytest.mark.asyncio
class TestExpiry:
    async def test_stale_duel_disappears(self, duel_store, test_redis, clock) -> None:
        await duel_store.put(new_duel("old"))
        clock.advance(3601)
        await duel_store.put(new_duel("new"))

        assert await duel_store.get(DuelId("old")) is None
        assert await duel_store.get(DuelId("new")) is not None
        assert await test_redis.get("duel:old") is None
        assert "old" not in test_redis._zsets["duels"]

    async def test_touch_keeps_duel_alive(self, duel_store, clock) -> None:
        duel = new_duel("d1")
        await duel_store.put(duel)
        clock.advance(3000)
        await duel_store.put(duel)
        clock.advance(3000)
        assert await duel_store.get(DuelId("d1")) is not None

    async def test_expire_returns_count(self, duel_store, clock) -> None:
        for i in range(3):
            await duel_store.put(new_duel(f"d{i}"))
        clock.advance(100)
        assert await duel_store.expire(max_age=50) == 3
        assert await duel_store.expire(max_age=50) == 0

    async def test_expire_nothing_stale(self, duel_store) -> None:
        await duel_store.put(new_duel("d1"))
        assert await duel_store.expire() == 0


@pytest.mark.asyncio
class TestScan:
    async def test_pages_in_touch_order(self, duel_store, clock) -> None:
        for i in range(5):
            await duel_store.put(new_duel(f"d{i}"))
            clock.advance(1)

        cursor, ids = await duel_store.scan_ids(None, 2)
        assert ids == ["d0", "d1"]
        assert cursor is not None

        cursor, ids2 = await duel_store.scan_ids(cursor, 2)
        assert ids2 == ["d2", "d3"]

        cursor, ids3 = await duel_store.scan_ids(cursor, 2)
        assert ids3 == ["d4"]
        assert cursor is None

    async def test_exact_page(self, duel_store, clock) -> None:
        for i in range(2):
            await duel_store.put(new_duel(f"d{i}"))
            clock.advance(1)
        cursor, ids = await duel_store.scan_ids(None, 2)
        assert ids == ["d0", "d1"]
        assert cursor is None

    async def test_empty(self, duel_store) -> None:
        assert await duel_store.scan_ids(None, 10) == (None, [])

    async def test_scan_skips_expired(self, duel_store, clock) -> None:
        await duel_store.put(new_duel("old"))
        clock.advance(3601)
        await duel_store.put(new_duel("new"))
        _, ids = await duel_store.scan_ids(None, 10)
        assert ids == ["new"]
