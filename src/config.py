from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://localhost:5432/campus_whisper"
    jwt_secret: str
    cors_allow_origins: str = "http://localhost:3000"

    email_user: str | None = None
    email_pass: str | None = None
    email_from: str | None = None
    email_api_url: str = "https://api.resend.com/emails"
    email_http_timeout_seconds: float = 10.0
    email_domain_suffix: str = "@pec.edu.in"

    code_ttl_seconds: int = 600
    token_ttl_seconds: int = 7 * 24 * 60 * 60
    handle_max_length: int = 20

    rate_limit_enabled: bool = True
    rate_limit_default: str = "100/15minutes"

    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout_seconds: int = 30
    db_echo_sql: bool = False

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("JWT_SECRET must be provided")
        return value

    @field_validator("email_domain_suffix")
    @classmethod
    def validate_domain_suffix(cls, value: str) -> str:
        value = value.strip().lower()
        if not value.startswith("@") or len(value) < 2:
            raise ValueError("EMAIL_DOMAIN_SUFFIX must look like '@example.edu'")
        return value

    @field_validator("code_ttl_seconds", "token_ttl_seconds", "handle_max_length")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    def cors_allow_origin_list(self) -> list[str]:
        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]

    def email_sender(self) -> str:
        return self.email_from or self.email_user or "no-reply@localhost"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
