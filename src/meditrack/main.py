"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from meditrack.achievements.router import router as achievements_router
from meditrack.config import get_settings
from meditrack.database import close_db, init_db
from meditrack.groups.router import router as groups_router
from meditrack.health.router import router as health_router
from meditrack.middleware import setup_middleware
from meditrack.redis_client import close_redis, init_redis
from meditrack.sessions.router import router as sessions_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_url:
        await init_redis(settings.redis_url)
    else:
        logger.info("No Redis URL configured; rate limiting disabled")

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Meditrack API",
        description="Meditation session tracking with streaks and one-time achievements",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(sessions_router)
    app.include_router(achievements_router)
    app.include_router(groups_router)

    return app


app = create_app()
