from __future__ import annotations

import os
from collections.abc import AsyncIterator, Iterator
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from src import models  # noqa: E402,F401
from src.auth.engine import AuthEngine  # noqa: E402
from src.db.connection import Base  # noqa: E402
from src.security.tokens import TokenCodec  # noqa: E402
from tests.fakes import FakeClock, InMemoryIdentityStore, RecordingMailer, ScriptedCodeGenerator  # noqa: E402

TEST_SECRET = "test-secret"
DOMAIN = "@pec.edu.in"


@pytest.fixture(autouse=True)
def _default_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://campus:pw@localhost:5432/campus_whisper")
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    from src.config import get_settings
    from src.security.tokens import get_token_codec

    get_settings.cache_clear()
    get_token_codec.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryIdentityStore:
    return InMemoryIdentityStore(clock)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def codes() -> ScriptedCodeGenerator:
    return ScriptedCodeGenerator()


@pytest.fixture
def tokens(clock: FakeClock) -> TokenCodec:
    return TokenCodec(secret=TEST_SECRET, ttl=timedelta(days=7), clock=clock)


@pytest.fixture
def engine(
    store: InMemoryIdentityStore,
    mailer: RecordingMailer,
    codes: ScriptedCodeGenerator,
    tokens: TokenCodec,
    clock: FakeClock,
) -> AuthEngine:
    return AuthEngine(
        store=store,
        mailer=mailer,
        codes=codes,
        tokens=tokens,
        clock=clock,
        domain_suffix=DOMAIN,
        code_ttl=timedelta(minutes=10),
    )


@pytest.fixture
def client(
    store: InMemoryIdentityStore,
    mailer: RecordingMailer,
    codes: ScriptedCodeGenerator,
    tokens: TokenCodec,
    clock: FakeClock,
) -> Iterator[TestClient]:
    from src.api.deps import get_clock, get_code_generator, get_identity_store, get_mailer
    from src.api.main import app
    from src.security.tokens import get_token_codec

    app.dependency_overrides[get_identity_store] = lambda: store
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_code_generator] = lambda: codes
    app.dependency_overrides[get_token_codec] = lambda: tokens
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def requires_test_db() -> bool:
    test_database_url = os.getenv("TEST_DATABASE_URL")
    return bool(test_database_url and test_database_url.startswith("postgresql+asyncpg://"))


@pytest.fixture(scope="session")
def test_database_url() -> str:
    test_database_url = os.getenv("TEST_DATABASE_URL")
    if not requires_test_db():
        if os.getenv("CI_PARITY") == "1":
            pytest.fail("CI parity mode requires TEST_DATABASE_URL to be set to a Postgres asyncpg URL")
        pytest.skip("TEST_DATABASE_URL not set for postgres integration tests")
    assert test_database_url is not None
    return test_database_url


@pytest.fixture
async def db_session(test_database_url: str) -> AsyncIterator[AsyncSession]:
    engine = create_async_engine(test_database_url, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(engine, expire_on_commit=False)
    async with maker() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
