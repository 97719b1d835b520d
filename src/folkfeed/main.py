"""FastAPI application entry point for Folkfeed."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from folkfeed import __version__
from folkfeed.api.routes import data_router, router
from folkfeed.config import get_settings
from folkfeed.utils.logging import get_logger, setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger(__name__)
    logger.info("Folkfeed starting", version=__version__, snapshot=str(settings.output_path))
    yield
    logger.info("Folkfeed shutting down")


app = FastAPI(
    title="Folkfeed",
    description="British folklore and UK foraging articles gathered from RSS feeds",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(router)
app.include_router(data_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic info."""
    return {
        "name": "Folkfeed",
        "version": __version__,
        "docs": "/docs",
    }
