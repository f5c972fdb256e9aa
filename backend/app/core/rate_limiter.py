"""
Inbound rate limiting for the Employee API Gateway.
Uses SlowAPI; Redis-backed when REDIS_URL is set so limits hold across instances.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import ApiErrorCode
from app.schemas.error import ErrorResponse

logger = logging.getLogger("employee_api.rate_limiter")


def get_real_client_ip(request: Request) -> str:
    """
    Get the real client IP, accounting for reverse proxies.
    Checks X-Forwarded-For header first, then falls back to direct IP.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the chain is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def get_user_identifier(request: Request) -> str:
    """
    Get a unique identifier for rate limiting.
    Uses the authenticated username if available, otherwise client IP.
    """
    user = getattr(request.state, "user", None)
    if user:
        return f"user:{user}"
    return f"ip:{get_real_client_ip(request)}"


storage_uri = None
if settings.REDIS_URL:
    storage_uri = settings.REDIS_URL
    logged_url = settings.REDIS_URL.split('@')[-1]
    logger.info(f"Rate limiter using Redis backend: {logged_url}")
elif settings.ENVIRONMENT.lower() == "production":
    logger.warning(
        "PRODUCTION WARNING: Rate limiting is using in-memory storage. "
        "Limits will not be shared across instances. Configure REDIS_URL."
    )
else:
    logger.info("Rate limiter using in-memory storage (suitable for single-instance deployments)")


limiter = Limiter(
    key_func=get_user_identifier,
    storage_uri=storage_uri,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render an exceeded inbound limit in the standard error envelope."""
    logger.warning(
        f"Rate limit exceeded for {get_user_identifier(request)} "
        f"on {request.method} {request.url.path}"
    )

    retry_after = getattr(exc, "retry_after", 60)
    content = ErrorResponse(
        code=ApiErrorCode.EXTERNAL_API_RATE_LIMITED.value,
        message=f"Too many requests. Please retry after {retry_after} seconds.",
        status=429,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=429,
        content=content.model_dump(),
        headers={"Retry-After": str(retry_after)},
    )


class RateLimits:
    """Configured limits for the rate-limited endpoints."""

    AUTH_LOGIN = settings.AUTH_LOGIN_RATE_LIMIT
    AUTH_REGISTER = settings.AUTH_REGISTER_RATE_LIMIT
