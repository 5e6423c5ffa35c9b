from __future__ import annotations

import logging
from contextlib import asynccontextmanager

logging.basicConfig(level=logging.INFO)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from hexchess.api.auth import router as auth_router
from hexchess.api.duels import router as duels_router
from hexchess.api.health import router as health_router
from hexchess.api.history import router as history_router
from hexchess.config import settings
from hexchess.engine.duel_service import DuelService
from hexchess.engine.duel_store import DuelStore
from hexchess.models.base import Base
from hexchess.models.database import async_session_factory, engine
import hexchess.models.history  # noqa: F401
from hexchess.ws.broadcaster import LocalBroadcaster, RedisBroadcaster
from hexchess.ws.handler import router as ws_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting up hexchess server...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")

    redis = Redis.from_url(settings.redis_url, decode_responses=False)
    app.state.redis = redis
    app.state.db_session_factory = async_session_factory

    local = LocalBroadcaster()
    broadcaster = RedisBroadcaster(redis, local, channel=settings.broadcast_channel)
    broadcaster.start()
    app.state.broadcaster = broadcaster

    store = DuelStore(redis, max_age=settings.duel_expire_seconds)
    app.state.duel_service = DuelService(
        store=store,
        broadcaster=broadcaster,
        db_session_factory=async_session_factory,
    )

    expired = await store.expire()
    if expired:
        logger.info(f"Cleaned up {expired} stale duels")

    logger.info("Server startup complete")

    yield

    logger.info("Shutting down hexchess server...")
    await broadcaster.stop()
    await redis.aclose()
    await engine.dispose()
    logger.info("Server shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="hexchess",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(duels_router, prefix="/api/v1")
    app.include_router(history_router, prefix="/api/v1")
    app.include_router(ws_router)
    app.include_router(health_router)

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn using the configured host and port."""
    import uvicorn

    uvicorn.run("hexchess.main:app", host=settings.host, port=settings.port, reload=settings.debug)
