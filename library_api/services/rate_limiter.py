"""
Rate Limiting Service

Request rate limiting with slowapi, keyed on the client IP.

Rate Limit Tiers:
=================
- Default (every route): RATE_LIMIT_DEFAULT, 100 requests/minute
- Write operations (create/update/delete): RATE_LIMIT_WRITE, 30 requests/minute

Counters live in RATE_LIMIT_STORAGE_URI (memory:// for a single process,
redis://... when several workers share the limits).
"""

import logging

from fastapi import Request
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from library_api.config import Settings

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60


def get_client_ip(request: Request) -> str:
    """
    Get client IP address for rate limiting.

    Honors X-Forwarded-For (first hop) and X-Real-IP set by a reverse
    proxy, then falls back to the socket peer.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


# Limit strings currently in force; configure_limiter() replaces them
_active_limits = {
    "default": Settings.model_fields["rate_limit_default"].default,
    "write": Settings.model_fields["rate_limit_write"].default,
}


def default_limit() -> str:
    """Limit applied to every route."""
    return _active_limits["default"]


def write_limit() -> str:
    """Limit applied to create/update/delete routes."""
    return _active_limits["write"]


# Route decorators need the limiter at import time. The limit strings are
# callables, so slowapi reads them per request.
limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[default_limit],
    storage_uri="memory://",
    strategy="fixed-window",
)


def configure_limiter(settings: Settings) -> Limiter:
    """
    Apply one app's settings to the shared limiter.

    Called by create_app(). Counters move to the configured storage when
    its URI differs from the current one.
    """
    _active_limits["default"] = settings.rate_limit_default
    _active_limits["write"] = settings.rate_limit_write
    limiter.enabled = settings.rate_limit_enabled

    if settings.rate_limit_storage_uri != limiter._storage_uri:
        limiter._storage_uri = settings.rate_limit_storage_uri
        limiter._storage = storage_from_string(settings.rate_limit_storage_uri)
        limiter._limiter = FixedWindowRateLimiter(limiter._storage)

    logger.info(
        f"Rate limiter configured - enabled: {settings.rate_limit_enabled}, "
        f"default: {settings.rate_limit_default}, write: {settings.rate_limit_write}"
    )
    return limiter


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Answer 429 in the API's error envelope, with a Retry-After header."""
    limit_detail = str(exc.detail)

    response = JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "Too many requests. Please slow down.",
            "detail": limit_detail,
        },
    )
    response.headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
    response.headers["X-RateLimit-Limit"] = limit_detail

    logger.warning(f"Rate limit exceeded for {get_client_ip(request)}: {limit_detail}")
    return response
