"""
Health check endpoint.

GET /health — checks connectivity of the configured store backend.
A store failure → "unhealthy" (503); the service cannot function without it.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dependencies import get_store
from repositories.protocol import CaptchaStore
from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def health_check(store: CaptchaStore = Depends(get_store)) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    try:
        await store.ping()
        checks["store"] = "ok"
    except Exception as e:
        log.error("health_store_ping_failed", error=str(e), error_type=type(e).__name__)
        checks["store"] = "error"
        overall = "unhealthy"

    status_code = 503 if overall == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content={"status": overall, "checks": checks},
    )
