"""Health check endpoints, used by load balancers and uptime monitoring."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from assistify import __version__
from assistify.database import check_db_connectivity

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Liveness probe; returns 200 if the process is running."""
    return {"status": "ok", "version": __version__}


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    """
    Readiness probe: checks DB connectivity and reports whether answer
    generation is configured. Returns 503 when the database is unreachable.
    """
    db_ok = await check_db_connectivity(request.app.state.sessionmaker)
    if not db_ok:
        logger.warning("Readiness check: database unreachable")

    body = {
        "db": "ok" if db_ok else "error",
        "generation": "ok" if request.app.state.settings.generation_configured else "disabled",
    }
    return JSONResponse(content=body, status_code=200 if db_ok else 503)
