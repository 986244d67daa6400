"""
Rate Limiting & Throttling
Per-IP request throttling with separate limits for reads, writes and
health probes.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse
import logging

from tripplanner.core.config import settings

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)

# Limits are configurable (READ_RATE_LIMIT, WRITE_RATE_LIMIT, HEALTH_RATE_LIMIT)
READ_LIMIT = settings.read_rate_limit
WRITE_LIMIT = settings.write_rate_limit
HEALTH_LIMIT = settings.health_rate_limit

RETRY_AFTER_SECONDS = 60


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with the limit that was hit, e.g. ``120 per 1 minute``."""
    client_host = request.client.host if request.client else "unknown"
    logger.warning(f"Rate limit {exc.detail} exceeded for {client_host}: {request.method} {request.url.path}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "too_many_requests",
            "detail": f"Rate limit exceeded ({exc.detail}). Please slow down.",
            "retry_after": RETRY_AFTER_SECONDS,
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )
