"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the form store and builds the engine once
  - CORS middleware
  - Global exception handlers (SDK ValueError → 404/409/400, KeyError → 404)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``formflow-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from formflow.engine import FormEngine
from formflow.store import FormStore
from formflow_db.engine import create_schema, dispose_engine, get_engine

from formflow_server.config import ServerSettings, load_settings
from formflow_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from formflow_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load YAML forms into a ``FormStore``
      2. Optionally create missing tables
      3. Build ``FormEngine`` and stash it on ``app.state``

    Shutdown:
      1. Dispose the database engine's connection pool
    """
    settings: ServerSettings = app.state.settings

    store = FormStore(forms_dir=settings.forms_dir)
    store.load()

    if settings.create_schema:
        await create_schema()
        logger.info("Database schema ensured")

    app.state.store = store
    app.state.engine = FormEngine(store)

    yield

    await dispose_engine()
    logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Formflow API Server",
        description="REST API for conditional multi-step forms",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — verifies DB connectivity."""
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok"}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": str(exc)}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn formflow_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``formflow-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "formflow_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
