from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.api.authn import require_account
from src.api.deps import get_auth_engine, get_identity_store
from src.auth.engine import AuthEngine, SessionGranted
from src.auth.handles import suggest_handle
from src.auth.store import IdentityStore
from src.models.account import Account

router = APIRouter()


class CodeRequest(BaseModel):
    email: str


class EnrollmentVerifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    otp: str
    anonymous_name: str | None = Field(default=None, alias="anonymousName")


class LoginVerifyRequest(BaseModel):
    email: EmailStr
    otp: str


def _session_payload(granted: SessionGranted) -> dict[str, Any]:
    return {
        "message": "Verification successful",
        "token": granted.token,
        "user": granted.account.to_schema().model_dump(mode="json"),
    }


@router.post("/send-otp")
async def send_otp(
    payload: CodeRequest,
    engine: Annotated[AuthEngine, Depends(get_auth_engine)],
) -> dict[str, str]:
    issued = await engine.request_enrollment_code(payload.email)
    return {"message": "OTP sent successfully to your email", "email": issued.email}


@router.post("/verify-otp")
async def verify_otp(
    payload: EnrollmentVerifyRequest,
    engine: Annotated[AuthEngine, Depends(get_auth_engine)],
) -> dict[str, Any]:
    granted = await engine.verify_enrollment_code(str(payload.email), payload.otp, payload.anonymous_name)
    return _session_payload(granted)


@router.post("/login")
async def login(
    payload: CodeRequest,
    engine: Annotated[AuthEngine, Depends(get_auth_engine)],
) -> dict[str, str]:
    issued = await engine.request_login_code(payload.email)
    return {"message": "OTP sent to your email for login", "email": issued.email}


@router.post("/verify-login-otp")
async def verify_login_otp(
    payload: LoginVerifyRequest,
    engine: Annotated[AuthEngine, Depends(get_auth_engine)],
) -> dict[str, Any]:
    granted = await engine.verify_login_code(str(payload.email), payload.otp)
    return _session_payload(granted)


@router.get("/me")
async def me(account: Annotated[Account, Depends(require_account)]) -> dict[str, Any]:
    return {"user": account.to_schema().model_dump(mode="json")}


@router.get("/suggest-handle")
async def suggest(store: Annotated[IdentityStore, Depends(get_identity_store)]) -> dict[str, str]:
    handle = await suggest_handle(store)
    if handle is None:
        raise HTTPException(status_code=503, detail="could not find a free anonymous name, try again")
    return {"handle": handle}
