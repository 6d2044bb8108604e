"""Translate domain errors into ``{"error": message}`` JSON responses."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace.domain.errors import MarketplaceError

logger = structlog.get_logger()


async def marketplace_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, MarketplaceError):
        return await unhandled_error_handler(request, exc)
    if exc.status_code >= 500:
        logger.error("request_failed", error=exc.message)
    else:
        logger.info("request_rejected", status_code=exc.status_code, error=exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", error_type=type(exc).__name__)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain and catch-all exception handlers on *app*."""
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
