"""Health & Readiness Probes: liveness and readiness endpoints.

Invariants:
    - GET /api/health/ always returns 200 if the process is up (liveness)
    - GET /api/health/ready returns 503 until the feed is bootstrapped and the
      data directory is writable (readiness)
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from livefeed.services import feed_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "livefeed-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe: feed bootstrapped and storage writable."""
    runtime = feed_runtime.runtime
    if runtime is None or not runtime.cache.is_bootstrapped:
        return _not_ready("feed_not_bootstrapped")
    if not await runtime.store.health_check():
        return _not_ready("storage_unavailable")
    return {
        "status": "ready",
        "checks": {"storage": "healthy"},
        "subscribers": runtime.hub.subscriber_count,
        "feed_length": len(runtime.cache.get().posts),
    }


def _not_ready(reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "reason": reason},
    )
