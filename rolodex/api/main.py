"""FastAPI application entry point for Rolodex.

Health check with DB connectivity. Workspace registry, membership and
tenant-scoped contact routers.
"""

import logging

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from rolodex.api.contacts import router as contacts_router
from rolodex.api.error_handlers import register_error_handlers
from rolodex.api.workspaces import invites_router
from rolodex.api.workspaces import router as workspaces_router
from rolodex.config.settings import Environment, get_settings

APP_VERSION = "0.1.0"

settings = get_settings()

_LOG_NAME_TO_LEVEL: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# --- Structured logging ---
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if settings.ENVIRONMENT == Environment.DEV
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        _LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value],
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)
logging.basicConfig(level=_LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value])

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

# --- FastAPI app ---
app = FastAPI(
    title="Rolodex API",
    description="Shared contact workspaces with invitation-based collaboration.",
    version=APP_VERSION,
)

# --- CORS middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == Environment.DEV else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


# --- Routers ---
# Global routers (not workspace-scoped)
app.include_router(invites_router)

# Workspace registry and membership, then tenant-scoped contacts
app.include_router(workspaces_router)
app.include_router(contacts_router)


# --- Infrastructure Endpoints (global) ---


@app.get("/health")
async def health_check() -> dict:
    """Liveness probe with component health checks.

    Returns 200 always (degraded status if components are down).
    """
    checks: dict[str, bool] = {"api": True}

    try:
        from rolodex.db.session import async_session_factory
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception:
        logger.warning("health_check_database_unreachable")
        checks["database"] = False

    all_ok = all(checks.values())

    return {
        "status": "ok" if all_ok else "degraded",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
        "checks": checks,
    }


@app.get("/api/version")
async def get_version() -> dict[str, str]:
    """Return application name, version, and environment."""
    return {
        "name": "Rolodex",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
    }
