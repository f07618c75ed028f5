"""
Rate limiting for the attestation endpoints using slowapi.

Each analysis triggers a paid vision-model call, so uploads are throttled per
client.
"""
import os

import structlog
from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

logger = structlog.get_logger(__name__)


def get_client_identifier(request: Request) -> str:
    """Client IP, honouring the first X-Forwarded-For hop behind a proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


# In-memory storage unless REDIS_URL is set
REDIS_URL = os.getenv("REDIS_URL")
if REDIS_URL:
    limiter = Limiter(key_func=get_client_identifier, storage_uri=REDIS_URL)
else:
    limiter = Limiter(key_func=get_client_identifier)


RATE_LIMITS = {
    "analysis": os.getenv("RATE_LIMIT_ANALYSIS", "20/hour"),
}

RETRY_AFTER_SECONDS = 60


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Return a JSON 429 with retry information."""
    logger.warning(
        "rate_limit_exceeded",
        client=get_client_identifier(request),
        path=request.url.path,
        limit=str(exc.detail),
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests. Please slow down.",
            "error_code": "ATT-429",
            "details": {
                "limit": str(exc.detail),
                "retry_after_seconds": RETRY_AFTER_SECONDS,
            },
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


def analysis_rate_limit():
    """Rate limit decorator for attestation analysis endpoints."""
    return limiter.limit(RATE_LIMITS["analysis"])
