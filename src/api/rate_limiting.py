from __future__ import annotations

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from src.config import get_settings


def build_limiter() -> Limiter:
    """One global cap per client address, applied to every route by middleware."""
    settings = get_settings()
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit_default],
        enabled=settings.rate_limit_enabled,
    )


def rate_limit_exceeded_handler(_request: Request, exc: RateLimitExceeded) -> Response:
    retry_after = "60"
    limit = getattr(exc, "limit", None)
    if limit is not None:
        retry_after = str(limit.limit.get_expiry())
    return JSONResponse(
        status_code=429,
        content={"error": "RateLimited", "message": f"Rate limit exceeded: {exc.detail}"},
        headers={"Retry-After": retry_after},
    )
