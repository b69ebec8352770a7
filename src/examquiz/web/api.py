"""FastAPI application factory.

Main entry point for the ExamQuiz Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from examquiz import __version__
from examquiz.config.app_config import load_app_config
from examquiz.db.database import get_db_path, init_db
from examquiz.web.routes import (
    badges_router,
    content_router,
    health_router,
    leaderboard_router,
    learners_router,
    questions_router,
    reference_router,
    stats_router,
    streaks_router,
    threads_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    init_db(get_db_path())
    logger.info("api.startup", db_path=str(get_db_path()))
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    config = load_app_config()

    app = FastAPI(
        title="ExamQuiz API",
        description="Exam practice, question moderation and lesson content",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(learners_router)
    app.include_router(leaderboard_router)
    app.include_router(badges_router)
    app.include_router(streaks_router)
    app.include_router(reference_router)
    app.include_router(questions_router)
    app.include_router(stats_router)
    app.include_router(content_router)
    app.include_router(threads_router)

    return app


# Default app instance for uvicorn
app = create_app()
