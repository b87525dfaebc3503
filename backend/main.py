"""
PaperMark Backend - Main FastAPI Application

AI grading, disputes and progress tracking for Cambridge AS & A Level papers.
Version: 1.0
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from papermark import __version__
from papermark.config.settings import Settings, settings as default_settings
from papermark.container import Services
from papermark.db import Database
from papermark.routes import (
    create_auth_routes,
    create_catalog_routes,
    create_exam_routes,
    create_file_routes,
    create_progress_routes,
    create_result_routes,
)
from papermark.services import GeminiOracle
from papermark.storage import GridFSStorage

# Setup logging
logging.basicConfig(
    level=default_settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def build_services(settings: Settings) -> Services:
    """Connect to MongoDB and wire storage, oracle and services."""
    settings.validate()
    logger.info("✅ Settings validated")

    database = await Database.connect(settings.MONGODB_URL, settings.DATABASE_NAME)
    try:
        await database.create_indexes()
        logger.info("✅ Database indexes created")
    except Exception as e:
        # Don't fail startup if indexes already exist
        logger.warning(f"Index creation warning: {e}")

    storage = GridFSStorage(database, settings.PUBLIC_BASE_URL)
    oracle = GeminiOracle(
        api_key=settings.LLM_API_KEY,
        model_name=settings.LLM_MODEL,
        timeout=settings.LLM_TIMEOUT,
        temperature=settings.LLM_TEMPERATURE,
        max_output_tokens=settings.LLM_MAX_OUTPUT_TOKENS,
        max_concurrency=settings.LLM_MAX_CONCURRENCY,
        fetch_timeout=settings.FILE_FETCH_TIMEOUT
    )
    return Services(settings, database, storage, oracle)


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """
    Build the FastAPI application.

    When `services` is given it is used as-is and the lifespan does not
    touch MongoDB or the oracle.
    """
    settings = settings or (services.settings if services else default_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """FastAPI lifespan context manager for startup/shutdown."""
        owned = None

        # STARTUP
        logger.info("🚀 PaperMark Backend Starting Up...")
        if app.state.services is None:
            try:
                owned = await build_services(settings)
            except Exception as e:
                logger.error(f"❌ Startup failed: {e}")
                raise
            app.state.services = owned
        logger.info("✅ Application startup complete")

        yield

        # SHUTDOWN
        logger.info("🛑 Shutting down...")
        if owned is not None:
            await owned.oracle.aclose()
            owned.database.close()
            app.state.services = None

    app = FastAPI(
        title="PaperMark API",
        description="AI grading for Cambridge AS & A Level past papers",
        version=__version__,
        lifespan=lifespan
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_auth_routes())
    app.include_router(create_exam_routes())
    app.include_router(create_result_routes())
    app.include_router(create_progress_routes())
    app.include_router(create_catalog_routes())
    app.include_router(create_file_routes())

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "database": "connected" if app.state.services else "disconnected"
        }

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "app": "PaperMark",
            "version": __version__,
            "docs": "/docs",
            "health": "/api/health"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        log_level=default_settings.LOG_LEVEL.lower()
    )
