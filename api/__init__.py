"""REST API module for the market board.

This module provides HTTP endpoints for:
- Accepting uploads from trusted sources
- Current listings and sale history per world or datacenter
- Content identity lookups
- Upload activity statistics
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import load_settings
from context import AppContext

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Dict[str, Any]] = None,
    context: Optional[AppContext] = None
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Validated settings; loaded from settings.conf if omitted
        context: Prebuilt context; the app creates and owns one if omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle startup and shutdown events."""
        owned = app.state.context is None
        if owned:
            logger.info("Initializing API...")
            app.state.context = await AppContext.startup(settings or load_settings())
        yield
        if owned:
            logger.info("Shutting down API...")
            await app.state.context.shutdown()
            app.state.context = None

    app = FastAPI(
        title="Market Board API",
        description="Crowd-sourced market board data aggregator",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Service banner."""
        return {'name': app.title, 'version': app.version}

    from .upload import router as upload_router
    from .content import router as content_router
    from .extra import router as extra_router
    from .market import router as market_router

    # The generic /api/{world}/{item_ids} route must come last
    app.include_router(upload_router)
    app.include_router(content_router)
    app.include_router(extra_router)
    app.include_router(market_router)

    return app


__all__ = ['create_app']
