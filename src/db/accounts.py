from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.errors import HandleTaken
from src.models.account import Account, AccountRow

logger = logging.getLogger(__name__)

HANDLE_INDEX_NAME = "ix_accounts_handle"


class SqlAlchemyIdentityStore:
    """IdentityStore backed by the ``accounts`` table.

    Every ``save`` commits, so a stored pending code is durable before the
    caller goes on to mail it.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load_by_email(self, email: str) -> Account | None:
        row = await self._row_by_email(email)
        return Account.from_row(row) if row is not None else None

    async def load_by_id(self, account_id: UUID) -> Account | None:
        row = await self._session.get(AccountRow, account_id, populate_existing=True)
        return Account.from_row(row) if row is not None else None

    async def load_by_handle(self, handle: str) -> Account | None:
        result = await self._session.execute(select(AccountRow).where(AccountRow.handle == handle))
        row = result.scalar_one_or_none()
        return Account.from_row(row) if row is not None else None

    async def unique_handle_check(self, handle: str, excluding_id: UUID | None) -> bool:
        query = select(AccountRow.id).where(AccountRow.handle == handle)
        if excluding_id is not None:
            query = query.where(AccountRow.id != excluding_id)
        result = await self._session.execute(query.limit(1))
        return result.scalar_one_or_none() is None

    async def save(self, account: Account) -> Account:
        try:
            row = await self._write(account)
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            if HANDLE_INDEX_NAME in str(exc.orig):
                raise HandleTaken() from exc
            if account.id is not None:
                raise
            # Two first requests for one email raced; the later write wins.
            logger.info("Concurrent account creation for %s; applying to stored row", account.email)
            row = await self._row_by_email(account.email)
            if row is None:
                raise
            account.apply_to_row(row)
            await self._session.commit()
        await self._session.refresh(row)
        return Account.from_row(row)

    async def _write(self, account: Account) -> AccountRow:
        row: AccountRow | None = None
        if account.id is not None:
            row = await self._session.get(AccountRow, account.id)
        if row is None:
            row = AccountRow(id=account.id) if account.id is not None else AccountRow()
            account.apply_to_row(row)
            self._session.add(row)
        else:
            account.apply_to_row(row)
        await self._session.flush()
        return row

    async def _row_by_email(self, email: str) -> AccountRow | None:
        result = await self._session.execute(
            select(AccountRow).where(AccountRow.email == email).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
