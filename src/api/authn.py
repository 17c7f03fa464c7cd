from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, Request

from src.api.deps import get_identity_store
from src.auth.errors import AccountDisabled, TokenRejected, TokenRequired
from src.auth.store import IdentityStore
from src.models.account import Account
from src.security.tokens import TokenCodec, get_token_codec

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise TokenRequired()
    token = authorization.removeprefix(BEARER_PREFIX).strip()
    if not token:
        raise TokenRequired()
    return token


def resolve_account_id_from_bearer(*, authorization: str | None, tokens: TokenCodec) -> UUID:
    token = extract_bearer_token(authorization)
    check = tokens.verify(token)
    if not check.ok or check.account_id is None:
        logger.info("Bearer token rejected (%s)", check.status.value, extra={"event_type": "auth.gate.rejected"})
        raise TokenRejected()
    return check.account_id


async def require_account(
    request: Request,
    store: Annotated[IdentityStore, Depends(get_identity_store)],
    tokens: Annotated[TokenCodec, Depends(get_token_codec)],
    authorization: Annotated[str | None, Header()] = None,
) -> Account:
    """Resolve the bearer token to a verified, active account.

    Missing credentials fail with 401, bad or expired tokens with 403, and a
    token for an unknown, unverified or inactive account with 401. The
    account id is left on ``request.state.account_id`` for later handlers.
    """
    account_id = resolve_account_id_from_bearer(authorization=authorization, tokens=tokens)
    account = await store.load_by_id(account_id)
    if account is None or not account.can_hold_session():
        raise AccountDisabled()
    request.state.account_id = account_id
    return account
