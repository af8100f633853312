"""Global exception handlers for the FastAPI application.

Domain errors become HTTP 200 envelopes with ``error: true``.  Transport
problems keep their HTTP status but use the same envelope shape.  Stack
traces are logged server-side and **never** returned to clients.
"""

import logging
import os
import uuid

import asyncpg
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app_engine.errors import AppEngineError, envelope

logger = logging.getLogger(__name__)


def _get_request_id(request: Request) -> str:
    """Request ID from :class:`RequestIDMiddleware`, or a fresh one."""
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


async def app_engine_error_handler(request: Request, exc: AppEngineError) -> JSONResponse:
    """Domain failure -- reported in the envelope with HTTP 200."""
    logger.warning(
        "%s on %s %s [request_id=%s]: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        _get_request_id(request),
        exc.message,
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=envelope(exc.message, error=True))


async def database_error_handler(request: Request, exc: asyncpg.PostgresError) -> JSONResponse:
    """Store failure -- logged with the process id, message surfaced."""
    logger.error(
        "[pid %d] Database error on %s %s [request_id=%s]: %s",
        os.getpid(),
        request.method,
        request.url.path,
        _get_request_id(request),
        exc,
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=envelope(str(exc), error=True))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle Starlette/FastAPI ``HTTPException`` -- preserves status code."""
    logger.warning(
        "HTTP %s on %s %s [request_id=%s]: %s",
        exc.status_code,
        request.method,
        request.url.path,
        _get_request_id(request),
        exc.detail,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(str(exc.detail) if exc.detail else "Error", error=True),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request (body not JSON, bad query types) -- returns 422."""
    errors = exc.errors()
    logger.warning(
        "Validation error on %s %s [request_id=%s]: %s",
        request.method,
        request.url.path,
        _get_request_id(request),
        errors,
    )
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=envelope(message, error=True),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for any unhandled exception -- returns 500."""
    logger.error(
        "[pid %d] Unhandled exception on %s %s [request_id=%s]",
        os.getpid(),
        request.method,
        request.url.path,
        _get_request_id(request),
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=envelope("Internal server error", error=True),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all global exception handlers on *app*."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(AppEngineError, app_engine_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(asyncpg.PostgresError, database_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]
