"""Code Host Directory - Main FastAPI Application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from codehost import __version__
from codehost.api import codehosts_router
from codehost.config import get_settings
from codehost.core.logging import RequestLoggingMiddleware, setup_logging
from codehost.database import init_db, close_db

settings = get_settings()
setup_logging(json_output=settings.log_json, level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    await init_db()
    yield
    # Shutdown
    await close_db()


app = FastAPI(
    title="Code Host Directory",
    description="Code host integrations and their OAuth authorization",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(codehosts_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Code Host Directory",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
