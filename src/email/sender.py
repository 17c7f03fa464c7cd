from __future__ import annotations

import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

APP_NAME = "Anonymous Social"


class Mailer(Protocol):
    async def send(self, to: str, subject: str, body_html: str, body_text: str | None = None) -> bool: ...


def build_verification_html(code: str, *, expiry_minutes: int) -> tuple[str, str]:
    subject = f"{APP_NAME} - Email Verification"
    html = f"""\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"></head>
<body style="margin:0;padding:0;background-color:#f4f4f5;font-family:Arial,sans-serif;">
  <div style="max-width:600px;margin:0 auto;padding:32px 20px;">
    <h2 style="margin:0 0 16px;color:#111827;">Email Verification</h2>
    <p style="margin:0 0 8px;color:#4b5563;">Your verification code is:</p>
    <div style="background-color:#f4f4f4;padding:20px;text-align:center;font-size:24px;
                font-weight:bold;letter-spacing:4px;margin:20px 0;">
      {code}
    </div>
    <p style="margin:0 0 8px;color:#4b5563;">This code will expire in {expiry_minutes} minutes.</p>
    <p style="margin:0;font-size:12px;color:#9ca3af;">If you didn't request this, please ignore this email.</p>
  </div>
</body>
</html>"""
    return subject, html


def build_verification_text(code: str, *, expiry_minutes: int) -> str:
    return (
        f"{APP_NAME} - Email Verification\n\n"
        f"Your verification code is: {code}\n\n"
        f"This code will expire in {expiry_minutes} minutes."
    )


class HttpMailer:
    """Delivers mail through an HTTP relay using one pooled ``httpx.AsyncClient``.

    With no ``api_key`` configured the message is logged instead of sent and
    the send counts as delivered, which keeps local development usable.
    """

    def __init__(
        self,
        *,
        api_url: str,
        api_key: str | None,
        sender: str,
        http_timeout_seconds: float,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._sender = sender
        self._timeout = http_timeout_seconds
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(self, to: str, subject: str, body_html: str, body_text: str | None = None) -> bool:
        if not self._api_key:
            logger.info("Mail to %s: %s (email sending disabled, no EMAIL_PASS)", to, body_text or subject)
            return True

        payload: dict[str, object] = {
            "from": self._sender,
            "to": [to],
            "subject": subject,
            "html": body_html,
        }
        if body_text is not None:
            payload["text"] = body_text

        try:
            response = await self._get_client().post(
                self._api_url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError:
            logger.exception("Failed to send mail to %s", to)
            return False
        if response.status_code >= 400:
            logger.error("Mail relay error %d: %s", response.status_code, response.text)
            return False
        try:
            relay_id = response.json().get("id", "unknown")
        except ValueError:
            relay_id = "unknown"
        logger.info("Mail sent to %s (relay id: %s)", to, relay_id)
        return True


async def send_verification_code(mailer: Mailer, *, to: str, code: str, expiry_minutes: int) -> bool:
    subject, html = build_verification_html(code, expiry_minutes=expiry_minutes)
    text = build_verification_text(code, expiry_minutes=expiry_minutes)
    return await mailer.send(to, subject, html, text)
