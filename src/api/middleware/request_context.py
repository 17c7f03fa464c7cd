from __future__ import annotations

import logging
from time import perf_counter

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.ops.events import (
    CORRELATION_ID_HEADER,
    new_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)


def _request_payload(request: Request, duration_ms: int) -> dict[str, object]:
    account_id = getattr(request.state, "account_id", None)
    return {
        "method": request.method,
        "path": request.url.path,
        "duration_ms": duration_ms,
        "account_id": str(account_id) if account_id is not None else None,
    }


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a correlation id to each request and logs its outcome."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or new_correlation_id()
        token = set_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id
        start = perf_counter()

        try:
            response: Response = await call_next(request)
        except Exception:
            payload = _request_payload(request, int((perf_counter() - start) * 1000))
            logger.exception(
                "Request failed %s %s",
                request.method,
                request.url.path,
                extra={"event_type": "api.request.failed", "ops_payload": payload},
            )
            raise
        else:
            payload = _request_payload(request, int((perf_counter() - start) * 1000))
            payload["status_code"] = response.status_code
            response.headers["X-Request-Id"] = correlation_id
            logger.info(
                "Request completed %s %s %d (%dms)",
                request.method,
                request.url.path,
                response.status_code,
                payload["duration_ms"],
                extra={"event_type": "api.request.completed", "ops_payload": payload},
            )
            return response
        finally:
            reset_correlation_id(token)
