from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from src.api.deps import get_mailer
from src.api.middleware.request_context import RequestContextMiddleware
from src.api.rate_limiting import build_limiter, rate_limit_exceeded_handler
from src.api.routes import api_router
from src.auth.errors import AuthError, StoreUnavailable
from src.config import get_settings
from src.db.connection import check_db_health, dispose_engine
from src.email.sender import HttpMailer
from src.ops.events import configure_logging

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    yield
    mailer = get_mailer()
    if isinstance(mailer, HttpMailer):
        await mailer.aclose()
    await dispose_engine()


app = FastAPI(title="Campus Whisper", version="0.1.0", lifespan=lifespan)
app.state.limiter = build_limiter()
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origin_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router)


@app.exception_handler(AuthError)
async def auth_error_handler(_request: Request, exc: AuthError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Auth request failed: %s", exc.code.value, extra={"event_type": "auth.error"})
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


# asyncpg can surface a refused connection as a bare OSError.
@app.exception_handler(SQLAlchemyError)
@app.exception_handler(OSError)
async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Store failure on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
        extra={"event_type": "store.unavailable"},
    )
    error = StoreUnavailable()
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/health/db")
async def health_db() -> dict[str, str]:
    if await check_db_health():
        return {"status": "ok"}
    raise HTTPException(status_code=503, detail="database unavailable")
