from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from fastapi import WebSocket

from hexchess.engine.models import DuelId
from hexchess.ws.messages import ServerMessage

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    """Fan-out of duel updates to every viewer of a duel id."""

    async def subscribe(self, duel_id: DuelId, ws: WebSocket) -> None:
        ...

    async def unsubscribe(self, duel_id: DuelId, ws: WebSocket) -> None:
        ...

    async def broadcast(self, duel_id: DuelId, message: ServerMessage) -> None:
        ...


class LocalBroadcaster:
    """Tracks the WebSockets connected to this process, keyed by duel id."""

    def __init__(self) -> None:
        # duel_id -> list[WebSocket]
        self._viewers: dict[str, list[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, duel_id: DuelId, ws: WebSocket) -> None:
        async with self._lock:
            self._viewers.setdefault(duel_id, []).append(ws)
        logger.info(f"Viewer subscribed to duel {duel_id}")

    async def unsubscribe(self, duel_id: DuelId, ws: WebSocket) -> None:
        async with self._lock:
            self._remove(duel_id, ws)
        logger.info(f"Viewer unsubscribed from duel {duel_id}")

    def _remove(self, duel_id: str, ws: WebSocket) -> None:
        viewers = self._viewers.get(duel_id)
        if viewers is None:
            return
        try:
            viewers.remove(ws)
        except ValueError:
            return
        if not viewers:
            del self._viewers[duel_id]

    def viewers(self, duel_id: DuelId) -> list[WebSocket]:
        return list(self._viewers.get(duel_id, []))

    async def broadcast(self, duel_id: DuelId, message: ServerMessage) -> None:
        await self.send_raw(duel_id, message.to_wire())

    async def send_raw(self, duel_id: str, data: dict) -> None:
        """Send an already-serialized payload to every local viewer."""
        async with self._lock:
            viewers = list(self._viewers.get(duel_id, []))

        dead = []
        for ws in viewers:
            try:
                await ws.send_json(data)
            except Exception as e:
                logger.warning(f"Failed to broadcast to viewer in duel {duel_id}: {e}")
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._remove(duel_id, ws)


class RedisBroadcaster:
    """
    Relays broadcasts through a Redis pub/sub channel so that viewers
    connected to any process receive them.

    Subscriptions stay local. ``broadcast`` only publishes; delivery to local
    sockets happens when the listener receives the message back, so every
    process (this one included) delivers exactly once.
    """

    def __init__(self, redis_client, local: LocalBroadcaster, channel: str = "duel-updates") -> None:
        self.redis = redis_client
        self.local = local
        self.channel = channel
        self._task: asyncio.Task | None = None

    async def subscribe(self, duel_id: DuelId, ws: WebSocket) -> None:
        await self.local.subscribe(duel_id, ws)

    async def unsubscribe(self, duel_id: DuelId, ws: WebSocket) -> None:
        await self.local.unsubscribe(duel_id, ws)

    async def broadcast(self, duel_id: DuelId, message: ServerMessage) -> None:
        data = json.dumps({"id": duel_id, "payload": message.to_wire()})
        await self.redis.publish(self.channel, data)

    async def handle_message(self, data: str | bytes) -> None:
        """Deliver one raw channel message to local viewers."""
        try:
            envelope = json.loads(data)
            duel_id = envelope["id"]
            payload = envelope["payload"]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Dropping malformed broadcast on {self.channel}: {e}")
            return
        await self.local.send_raw(duel_id, payload)

    async def listen(self) -> None:
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(self.channel)
        logger.info(f"Listening for duel broadcasts on {self.channel}")
        try:
            async for item in pubsub.listen():
                if item.get("type") != "message":
                    continue
                try:
                    await self.handle_message(item["data"])
                except Exception as e:
                    logger.error(f"Error relaying broadcast: {e}", exc_info=True)
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self.listen())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
