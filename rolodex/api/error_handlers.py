"""Global exception handlers for the Rolodex API.

- RolodexError → structured JSON with the error's code and HTTP status
- RequestValidationError → 422 with field-level details
- connection-level SQLAlchemy errors → 503 BACKEND_UNAVAILABLE
- Exception (catch-all) → 500, never leaks internal details
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from rolodex.errors import BackendUnavailableError, RolodexError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_validation_error_handler(app)
    _register_backend_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RolodexError)
    async def domain_error_handler(request: Request, exc: RolodexError):
        log = logger.error if exc.http_status >= 500 else logger.warning
        log("%s on %s: %s", exc.code, request.url.path, exc.message)
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_build_validation_error_response(exc),
        )


def _register_backend_error_handler(app: FastAPI) -> None:

    async def backend_error_handler(request: Request, exc: Exception):
        logger.error("Persistence backend failure on %s: %s", request.url.path, exc)
        error = BackendUnavailableError("Persistence backend unavailable.")
        return JSONResponse(status_code=error.http_status, content=error.to_response())

    app.add_exception_handler(OperationalError, backend_error_handler)
    app.add_exception_handler(InterfaceError, backend_error_handler)


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s: %s", request.url.path, exc, exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
