"""
FastAPI application entry point.

Creates the app, registers error handling, rate limiting and the HTTP
pipeline (CORS, size limit, request id, access log), mounts the routers
and the health check.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from methodscope.config import APP_VERSION, get_settings
from methodscope.middleware.error_handler import setup_error_handlers
from methodscope.middleware.http import setup_http
from methodscope.middleware.rate_limiter import setup_rate_limiter
from methodscope.routes.analyze import router as analyze_router
from methodscope.routes.constructor import router as constructor_router
from methodscope.routes.metadata import router as metadata_router
from methodscope.utils.logger import get_logger

logger = get_logger(__name__)


def _check_workspace() -> None:
    """Log whether the configured contract and package directories exist."""
    settings = get_settings()
    for label, path in (
        ("Contracts", settings.CONTRACTS_DIR),
        ("Binding packages", settings.PACKAGES_DIR),
    ):
        if path.is_dir():
            entries = sum(1 for p in path.iterdir() if p.is_dir())
            logger.info("✅ %s directory ready: %s (%d entries)", label, path, entries)
        else:
            logger.warning(
                "⚠️  %s directory not found: %s. /metadata/generate will fail until it exists.",
                label, path,
            )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: runs on startup and shutdown."""
    settings = get_settings()
    logger.info(
        "methodscope API started  env=%s  entry_module=%s  origins=%s",
        settings.ENVIRONMENT,
        settings.ENTRY_MODULE,
        settings.allowed_origins_list,
    )
    _check_workspace()
    yield
    logger.info("methodscope API shutting down")


app = FastAPI(
    title="methodscope API",
    version=APP_VERSION,
    description="Read/write classification and typed method metadata for Soroban contracts",
    lifespan=lifespan,
)

# ── Middleware ────────────────────────────────────────────────
setup_error_handlers(app)
setup_rate_limiter(app)
setup_http(app)

# ── Routes ────────────────────────────────────────────────────
app.include_router(analyze_router, prefix="/api/v1")
app.include_router(metadata_router, prefix="/api/v1")
app.include_router(constructor_router, prefix="/api/v1")


# ── Health Check ──────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict:
    """Return API health status."""
    return {"status": "ok", "version": APP_VERSION}
