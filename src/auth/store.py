from __future__ import annotations

from typing import Protocol
from uuid import UUID

from src.models.account import Account


class IdentityStore(Protocol):
    """Account persistence consumed by the auth engine and the request gate.

    ``save`` returns the stored value (with ``id`` assigned on first save) and
    must be visible to every subsequent load.
    """

    async def load_by_email(self, email: str) -> Account | None: ...

    async def load_by_id(self, account_id: UUID) -> Account | None: ...

    async def load_by_handle(self, handle: str) -> Account | None: ...

    async def save(self, account: Account) -> Account: ...

    async def unique_handle_check(self, handle: str, excluding_id: UUID | None) -> bool: ...
