"""Pytest configuration and fixtures."""

import os

# Set test environment before importing app
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "development"
os.environ["JWT_SECRET_KEY"] = "test-secret-not-real"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["AWS_ACCESS_KEY_ID"] = "test-access-key"
os.environ["AWS_SECRET_ACCESS_KEY"] = "test-secret-key"
os.environ.pop("ANTHROPIC_API_KEY", None)

from collections.abc import AsyncGenerator
from types import SimpleNamespace

import pymupdf
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.deps import get_current_user
from app.db.base import Base
from app.db.models import User
from app.db.session import get_db
from app.main import app
from app.services.llm_gateway import llm_gateway
from tests.fakes import FakeMessages


# =============================================================================
# GATEWAY
# =============================================================================


@pytest.fixture
def gateway(monkeypatch) -> FakeMessages:
    """Install a fake Anthropic client on the gateway singleton."""
    messages = FakeMessages()
    monkeypatch.setattr(llm_gateway, "_client", SimpleNamespace(messages=messages))
    return messages


# =============================================================================
# DATABASE / APP
# =============================================================================


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh in-memory database per test; every session shares its single connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and inspecting rows; requests get their own sessions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    user = User(email="student@example.com", name="Test Student")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def client(session_factory, user: User) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints as `user`."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: user

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def pdf_bytes() -> bytes:
    """A small one-page PDF."""
    doc = pymupdf.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Photosynthesis converts light energy into chemical energy.")
    data = doc.tobytes()
    doc.close()
    return data
