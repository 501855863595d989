"""
FastAPI app for the cross-stitch shop.
Run with `uvicorn crossstitch.api:build_app --factory` or `crossstitch serve`.
"""
from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import load_settings
from .logs import setup_logging
from .repository import CatalogFeedbackStore, build_store
from .routes import admin as admin_routes
from .routes import base as base_routes
from .routes import feedback as feedback_routes
from .routes import pages as pages_routes

logger = logging.getLogger(__name__)


def create_app(store: CatalogFeedbackStore, static_dir: str | None = None) -> FastAPI:
    app = FastAPI(title="crossstitch-shop", version=__version__)
    app.state.store = store

    if static_dir and os.path.isdir(static_dir):
        app.mount("/static", StaticFiles(directory=static_dir), name="static")
    elif static_dir:
        logger.warning("static directory %s not found, /static is not served", static_dir)

    @app.on_event("shutdown")
    def on_shutdown():
        store.close()

    app.include_router(base_routes.router)
    app.include_router(pages_routes.router)
    app.include_router(feedback_routes.router)
    app.include_router(admin_routes.router)
    return app


def prepare_store(store: CatalogFeedbackStore) -> CatalogFeedbackStore:
    """Schema and seed data must exist before the first request; errors propagate."""
    store.initialize()
    store.seed_if_empty()
    stats = store.database_stats()
    logger.info("catalog items: %d, feedback entries: %d", stats.catalog_count, stats.feedback_count)
    return store


def build_app() -> FastAPI:
    settings = load_settings()
    setup_logging(settings.log_level)
    store = prepare_store(build_store(settings))
    return create_app(store, static_dir=settings.static_dir)
