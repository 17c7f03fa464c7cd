from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.clock import Clock, SystemClock
from src.auth.codes import CodeGenerator, SecretsCodeGenerator
from src.auth.engine import AuthEngine
from src.auth.store import IdentityStore
from src.config import get_settings
from src.db.accounts import SqlAlchemyIdentityStore
from src.db.connection import get_db
from src.email.sender import HttpMailer, Mailer
from src.security.tokens import TokenCodec, get_token_codec

_system_clock = SystemClock()


def get_clock() -> Clock:
    return _system_clock


@lru_cache(maxsize=1)
def get_mailer() -> Mailer:
    settings = get_settings()
    return HttpMailer(
        api_url=settings.email_api_url,
        api_key=settings.email_pass,
        sender=settings.email_sender(),
        http_timeout_seconds=settings.email_http_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_code_generator() -> CodeGenerator:
    settings = get_settings()
    return SecretsCodeGenerator(clock=_system_clock, ttl=timedelta(seconds=settings.code_ttl_seconds))


def get_identity_store(session: Annotated[AsyncSession, Depends(get_db)]) -> IdentityStore:
    return SqlAlchemyIdentityStore(session)


def get_auth_engine(
    store: Annotated[IdentityStore, Depends(get_identity_store)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
    codes: Annotated[CodeGenerator, Depends(get_code_generator)],
    tokens: Annotated[TokenCodec, Depends(get_token_codec)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> AuthEngine:
    settings = get_settings()
    return AuthEngine(
        store=store,
        mailer=mailer,
        codes=codes,
        tokens=tokens,
        clock=clock,
        domain_suffix=settings.email_domain_suffix,
        code_ttl=timedelta(seconds=settings.code_ttl_seconds),
        handle_max_length=settings.handle_max_length,
    )
