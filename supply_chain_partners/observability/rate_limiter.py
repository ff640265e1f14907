"""
Per-IP and per-API-key rate limiting using slowapi.

Limits are attached per route with ``rate_limit()``; ``limiter.enabled``
follows the RATE_LIMIT_ENABLED setting.
"""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from supply_chain_partners.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def get_api_key_from_request(request: Request) -> str | None:
    return request.headers.get("X-API-Key")


def is_authenticated(request: Request) -> bool:
    api_key = get_api_key_from_request(request)
    return bool(api_key and api_key in settings.api_keys)


def get_rate_limit_key(request: Request) -> str:
    """Get rate limit key based on IP or API key."""
    if is_authenticated(request):
        return f"api_key:{get_api_key_from_request(request)}"
    return get_remote_address(request)


def get_rate_limit_for_key(key: str) -> str:
    """Rate limit string for a key produced by get_rate_limit_key."""
    if key.startswith("api_key:"):
        return f"{settings.rate_limit_per_minute_authenticated}/minute"
    return f"{settings.rate_limit_per_minute}/minute"


limiter = Limiter(key_func=get_rate_limit_key, enabled=settings.rate_limit_enabled)


def rate_limit():
    """Decorator applying the per-key limit to an endpoint.

    The endpoint must take a ``request: Request`` parameter.
    """
    return limiter.limit(get_rate_limit_for_key)


def setup_rate_limiter(app) -> None:
    """Attach the limiter and its 429 handler to the FastAPI app."""
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        """Handle rate limit exceeded with user-friendly message."""
        request_id = getattr(request.state, "request_id", "unknown")
        key = get_rate_limit_key(request)
        logger.warning(f"Rate limit exceeded for {key}", extra={"request_id": request_id})

        response = JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "error": "Too many requests. Please try again later.",
                "request_id": request_id,
            },
        )
        response.headers["Retry-After"] = "60"
        limit_value = (
            settings.rate_limit_per_minute_authenticated
            if key.startswith("api_key:")
            else settings.rate_limit_per_minute
        )
        response.headers["X-RateLimit-Limit"] = str(limit_value)
        response.headers["X-RateLimit-Remaining"] = "0"
        return response

    if not limiter.enabled:
        logger.info("Rate limiting is disabled")
        return
    logger.info(
        f"Rate limiting enabled: {settings.rate_limit_per_minute} req/min (unauthenticated), "
        f"{settings.rate_limit_per_minute_authenticated} req/min (authenticated)"
    )
