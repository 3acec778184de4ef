# ABOUTME: FastAPI application factory with database, model bootstrap and scheduler lifespan.
# ABOUTME: Main entry point for the LegisTrack HTTP API.

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from legis_track.ai.ollama import OllamaClient
from legis_track.config import get_settings
from legis_track.db.session import close_db, init_db
from legis_track.services.ingestion_service import run_ingestion
from legis_track.services.scheduler import ScheduledIngestion
from legis_track.web.routes import analytics, api, documents, ingestion

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan: database, Ollama bootstrap and periodic ingestion."""
    settings = get_settings()
    logger.info("app_startup")
    await init_db()

    ai_model = OllamaClient(settings)
    scheduler = ScheduledIngestion(run_ingestion, settings)
    app.state.ai_model = ai_model
    app.state.scheduler = scheduler

    bootstrap = asyncio.create_task(ai_model.initialize(), name="ollama_bootstrap")
    scheduler.start()
    yield

    logger.info("app_shutdown")
    await scheduler.stop()
    bootstrap.cancel()
    await asyncio.gather(bootstrap, return_exceptions=True)
    await ai_model.aclose()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="LegisTrack",
        description="U.S. bill tracking with AI-assisted impact analysis",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(documents.router)
    app.include_router(analytics.router)
    app.include_router(ingestion.router)
    app.include_router(api.router)

    return app


# Application instance for uvicorn
app = create_app()
