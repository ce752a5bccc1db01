"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from zeclub.announcements.router import router as announcements_router
from zeclub.config import get_settings
from zeclub.database import Database
from zeclub.events.router import router as events_router
from zeclub.gamification.router import router as gamification_router
from zeclub.health.router import router as health_router
from zeclub.middleware import setup_middleware
from zeclub.missions.router import router as missions_router
from zeclub.redis_client import RedisPool
from zeclub.rewards.router import router as rewards_router
from zeclub.submissions.router import router as submissions_router
from zeclub.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database and Redis pools on startup, close them on shutdown."""
    settings = get_settings()

    db = Database(settings.database_url)
    await db.connect()
    app.state.db = db

    redis = RedisPool(settings.redis_url)
    await redis.connect()
    app.state.redis = redis

    logger.info("app_started", environment=settings.environment, version=settings.app_version)

    yield

    await redis.close()
    await db.dispose()
    logger.info("app_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ZE Club API",
        description="Backend API for the Zero Error Esports member club: missions, ZE Coins, ranks, rewards, events and announcements",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(gamification_router)
    app.include_router(missions_router)
    app.include_router(submissions_router)
    app.include_router(rewards_router)
    app.include_router(users_router)
    app.include_router(events_router)
    app.include_router(announcements_router)

    return app


app = create_app()
