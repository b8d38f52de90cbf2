"""FastAPI application factory for the transaction API."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .routes.health import router as health_router
from .routes.transactions import router as transactions_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting TD Commission Engine API")
    # Create the schema up front so the first request doesn't pay for it
    from ..storage.database import TransactionDatabase
    TransactionDatabase(settings.db_path)
    logger.info(f"Database ready at {settings.db_path}")

    yield

    logger.info("TD Commission Engine API shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="TD Commission Engine API",
        description="Transaction stage tracking and commission splits",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(health_router)
    app.include_router(transactions_router)

    return app


# Module-level app instance for uvicorn
app = create_app()
