# modelshelf/api/main.py
"""FastAPI application entry point."""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import Config
from ..errors import CatalogError
from ..logging_config import setup_logging
from .dependencies import cleanup_dependencies, get_config, get_config_sync, get_refresher, get_store
from .routes import collections, library, models

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    config = await get_config()
    setup_logging(
        log_level=config.logging.level,
        log_dir=config.logging.dir,
        enable_file_logging=config.logging.file_logging,
    )

    store = await get_store(config)
    if config.refresh.refresh_on_startup:
        refresher = await get_refresher(config, store)
        try:
            await refresher.refresh()
        except CatalogError:
            logger.exception("Startup refresh failed")

    yield
    await cleanup_dependencies()


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance with routes, middleware, and error handlers.
    """
    config = config or get_config_sync()

    app = FastAPI(
        title="Modelshelf API",
        description="Catalog of 3D model packs",
        version="0.1.0",
        lifespan=lifespan,
        debug=config.api.debug,
    )

    @app.exception_handler(CatalogError)
    async def catalog_exception_handler(request: Request, exc: CatalogError):
        logger.error("Catalog unavailable: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"error": "Catalog unavailable"},
        )

    # Global Exception Handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = str(uuid.uuid4())[:8]
        logger.exception("Unhandled exception [%s]: %s", error_id, exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "error_id": error_id},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(library.router, prefix="/api", tags=["library"])
    app.include_router(models.router, prefix="/api/models", tags=["models"])
    app.include_router(collections.router, prefix="/api", tags=["collections"])

    @app.get("/health", tags=["health"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": "0.1.0",
        }

    return app


# Default app instance for uvicorn
app = create_app()
