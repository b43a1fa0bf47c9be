"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from meridian.api.routes import health, imports
from meridian.core.config import AppSettings
from meridian.core.logging_config import configure_logging
from meridian.importer.service import ImportService
from meridian.persistence import Persistence, create_persistence

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize and tear down application resources."""
    settings: AppSettings = app.state.settings
    configure_logging(settings.log_level)

    persistence: Persistence | None = getattr(app.state, "persistence", None)
    if persistence is None:
        persistence = create_persistence(settings)
        app.state.persistence = persistence

    service = ImportService(persistence.store, persistence.channel, settings.imports)
    app.state.import_service = service
    logger.info("Meridian started (environment=%s, backend=%s)", settings.environment, settings.backend)
    yield

    await service.shutdown()
    close = getattr(persistence.channel, "close", None)
    if close is not None:
        await close()


def create_app(settings: AppSettings | None = None, persistence: Persistence | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``persistence`` overrides the backends built from ``settings``; tests pass
    in-memory backends this way.
    """
    app = FastAPI(
        title="Meridian Household Import Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or AppSettings()
    app.state.persistence = persistence
    app.include_router(health.router)
    app.include_router(imports.router, prefix="/imports")
    return app
