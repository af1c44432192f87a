"""
Application factory for the salad cart FastAPI application.

This module builds the FastAPI app around a catalog gateway chosen from
configuration, and provides a runner for local development.
"""

import logging
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config, db
from .catalog.gateway import CatalogGateway, PocketBaseCatalogGateway, StaticCatalogGateway
from .logging_config import setup_logging
from .routes import cart_router, composites_router
from .services.carts import get_cache_stats

logger = logging.getLogger(__name__)


def gateway_from_config() -> CatalogGateway:
    """
    Build the catalog gateway from configuration.

    CATALOG_SEED_FILE selects the in-memory catalog; otherwise the remote
    document service at CATALOG_BASE_URL is used.
    """
    if config.CATALOG_SEED_FILE:
        return StaticCatalogGateway.from_file(config.CATALOG_SEED_FILE)
    return PocketBaseCatalogGateway(
        config.CATALOG_BASE_URL,
        timeout=config.CATALOG_TIMEOUT_SECONDS,
    )


def create_app(
    gateway: Optional[CatalogGateway] = None,
    init_database: bool = True,
) -> FastAPI:
    """
    Create a FastAPI application.

    Args:
        gateway: Catalog gateway to use. If None, one is built from configuration.
        init_database: Create the mirror tables on startup.

    Returns:
        Configured FastAPI application
    """
    load_dotenv()
    setup_logging()

    if gateway is None:
        gateway = gateway_from_config()

    logger.info("Creating FastAPI application with %s", type(gateway).__name__)

    app = FastAPI(
        title="Salad Cart API",
        description="Cart composition and reorder service for the salad storefront",
        version="1.0.0",
    )
    app.state.gateway = gateway

    if init_database:
        db.init_db()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(cart_router)
    app.include_router(composites_router)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "catalog": type(gateway).__name__,
            "cart_cache": get_cache_stats(),
        }

    logger.info("Application created successfully")

    return app


def run(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
) -> None:
    """
    Run the application with uvicorn.

    Args:
        host: Host to bind to
        port: Port to run on
        reload: Enable auto-reload for development
    """
    import uvicorn

    logger.info("Starting salad cart server on %s:%d", host, port)

    if reload:
        uvicorn.run(
            "salad_cart.app_factory:create_app",
            factory=True,
            host=host,
            port=port,
            reload=True,
        )
    else:
        uvicorn.run(create_app(), host=host, port=port)
