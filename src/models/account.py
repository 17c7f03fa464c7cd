from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, String, text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from src.db.connection import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AccountRow(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        Index(
            "ix_accounts_handle",
            "handle",
            unique=True,
            postgresql_where=text("handle IS NOT NULL"),
        ),
        CheckConstraint(
            "(pending_code IS NULL) = (pending_code_expires_at IS NULL)",
            name="ck_accounts_pending_code_complete",
        ),
    )

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    handle: Mapped[str | None] = mapped_column(String(20), nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    pending_code: Mapped[str | None] = mapped_column(String(6), nullable=True)
    pending_code_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class PendingCode(BaseModel):
    """Digits issued to an account and the instant they stop being redeemable."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(pattern=r"^\d{6}$")
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at


class Account(BaseModel):
    """Store-independent account value handled by the auth engine.

    ``id`` stays ``None`` until the store assigns one on first save. An empty
    ``handle`` means the account has not completed its first verification.
    """

    id: UUID | None = None
    email: str
    handle: str = ""
    avatar: str | None = None
    verified: bool = False
    active: bool = True
    pending_code: PendingCode | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def can_hold_session(self) -> bool:
        return self.verified and self.active

    def to_schema(self) -> AccountRead:
        return AccountRead.from_account(self)

    @classmethod
    def from_row(cls, row: AccountRow) -> Account:
        pending = None
        if row.pending_code is not None and row.pending_code_expires_at is not None:
            pending = PendingCode(code=row.pending_code, expires_at=row.pending_code_expires_at)
        return cls(
            id=row.id,
            email=row.email,
            handle=row.handle or "",
            avatar=row.avatar,
            verified=row.verified,
            active=row.active,
            pending_code=pending,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def apply_to_row(self, row: AccountRow) -> None:
        row.email = self.email
        row.handle = self.handle or None
        row.avatar = self.avatar
        row.verified = self.verified
        row.active = self.active
        if self.pending_code is None:
            row.pending_code = None
            row.pending_code_expires_at = None
        else:
            row.pending_code = self.pending_code.code
            row.pending_code_expires_at = self.pending_code.expires_at


class AccountRead(BaseModel):
    id: UUID
    email: str
    handle: str
    avatar: str | None
    verified: bool

    @classmethod
    def from_account(cls, account: Account) -> AccountRead:
        if account.id is None:
            raise ValueError("account has not been saved")
        return cls(
            id=account.id,
            email=account.email,
            handle=account.handle,
            avatar=account.avatar,
            verified=account.verified,
        )


class ProfileRead(BaseModel):
    id: UUID
    handle: str
    avatar: str | None
    verified: bool
    created_at: datetime | None

    @classmethod
    def from_account(cls, account: Account) -> ProfileRead:
        if account.id is None:
            raise ValueError("account has not been saved")
        return cls(
            id=account.id,
            handle=account.handle,
            avatar=account.avatar,
            verified=account.verified,
            created_at=account.created_at,
        )
