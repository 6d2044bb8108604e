"""Liveness and readiness endpoints.

``GET /health`` answers as long as the process runs.  ``GET /ready`` pings the
marketplace database and answers 503 with the failing check when it cannot.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = structlog.get_logger()


async def _database_check(services: dict[str, Any]) -> str:
    db = services.get("db")
    if db is None:
        return "fail"
    try:
        await asyncio.to_thread(db.ping)
    except Exception as exc:
        logger.warning("readiness_database_failed", error=str(exc))
        return "fail"
    return "ok"


def register_health_routes(app: FastAPI) -> None:
    """Register ``/health`` and ``/ready`` endpoints on *app*."""

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/ready")
    async def ready(request: Request) -> JSONResponse:
        checks = {"database": await _database_check(request.app.state.services)}
        healthy = all(result == "ok" for result in checks.values())
        return JSONResponse(
            content={"status": "ready" if healthy else "not_ready", "checks": checks},
            status_code=200 if healthy else 503,
        )
