"""Test configuration and fixtures."""

import os
from typing import AsyncGenerator

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set up test environment variables BEFORE importing app modules
os.environ.setdefault("CODEHOST_STATE_SECRET", "test-state-secret-for-testing-only")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from codehost.core.cipher import StateCipher
from codehost.core.codehost_store import CodeHostStore
from codehost.core.state_codec import StateCodec
from codehost.database import Base
from codehost.models import CodeHost
from codehost.oauth import new_oauth


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def store(db_session: AsyncSession) -> CodeHostStore:
    """Code host store over the test session."""
    return CodeHostStore(db_session)


@pytest.fixture
def codec() -> StateCodec:
    """State codec with a fixed test secret."""
    return StateCodec(StateCipher("test-state-secret-for-testing-only"), ttl_seconds=600)


@pytest.fixture
async def github_host(db_session: AsyncSession) -> CodeHost:
    """GitHub code host stored under id 5."""
    code_host = CodeHost(
        id=5,
        type="github",
        address="https://github.com",
        namespace="koderover",
        application_id="gh-client-id",
        client_secret="gh-client-secret",
        created_at=1700000000,
        updated_at=1700000000,
    )
    db_session.add(code_host)
    await db_session.commit()
    await db_session.refresh(code_host)
    return code_host


def mock_provider_factory(handler):
    """Adapter factory whose HTTP calls are answered by handler."""
    transport = httpx.MockTransport(handler)

    def factory(*args, **kwargs):
        return new_oauth(*args, transport=transport, **kwargs)

    return factory


def token_handler(payload: dict, status_code: int = 200, seen: list | None = None):
    """MockTransport handler answering every request with a JSON body."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return handler


@pytest.fixture
def make_provider_factory():
    return mock_provider_factory


@pytest.fixture
def make_token_handler():
    return token_handler
