from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field

from src.api.authn import require_account
from src.api.deps import get_auth_engine, get_identity_store
from src.auth.engine import AuthEngine
from src.auth.store import IdentityStore
from src.models.account import Account, ProfileRead

router = APIRouter()


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    anonymous_name: str | None = Field(default=None, alias="anonymousName")
    avatar: AnyHttpUrl | None = None


@router.get("/profile")
async def get_profile(account: Annotated[Account, Depends(require_account)]) -> dict[str, Any]:
    return {"user": ProfileRead.from_account(account).model_dump(mode="json")}


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdateRequest,
    account: Annotated[Account, Depends(require_account)],
    engine: Annotated[AuthEngine, Depends(get_auth_engine)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> dict[str, Any]:
    if payload.anonymous_name:
        account = await engine.change_handle(account, payload.anonymous_name)
    if payload.avatar is not None:
        account.avatar = str(payload.avatar)
        account = await store.save(account)
    return {
        "message": "Profile updated successfully",
        "user": ProfileRead.from_account(account).model_dump(mode="json"),
    }
