from __future__ import annotations
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import router
from app.web import router as web_router
from errors import ConfigurationError, StoreError
from logging_config import configure_logging
from services.readings import build_default_service
from settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # The store must answer before any request is served.
    service = build_default_service()
    try:
        yield
    finally:
        service.shutdown()
        build_default_service.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()
    app = FastAPI(
        title="Tambak Monitor",
        description="Ingestion and query service for pond sensor readings.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.allows_any_origin else list(settings.cors_origins),
        # Browsers reject credentialed requests against a wildcard origin.
        allow_credentials=not settings.allows_any_origin,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    app.include_router(web_router)
    return app


def run() -> None:
    """Connect to the store, then serve; exit non-zero if the store is unusable."""
    configure_logging()
    settings = get_settings()
    try:
        build_default_service()
    except (ConfigurationError, StoreError) as exc:
        logger.critical("Store initialization failed", extra={"reason": str(exc)})
        sys.exit(1)

    logger.info(
        "Starting server on port %s (%s)",
        settings.port,
        settings.app_env,
        extra={"store_backend": settings.store_backend, "store_path": settings.store_root_path},
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


app = create_app()
