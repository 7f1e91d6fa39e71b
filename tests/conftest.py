from contextlib import contextmanager
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.auth.dependencies import create_access_token
from libs.common.config import get_settings
from libs.db.base import Base

# Import models so metadata includes every store table
from services.store_service import models as _store_models  # noqa: F401


def auth_headers(user_id: int, role: str = "customer") -> dict:
    """Bearer headers carrying a real signed token for ``user_id``."""
    return {"Authorization": f"Bearer {create_access_token(user_id, role=role)}"}


@contextmanager
def override_settings(**values):
    """Temporarily change cached settings fields."""
    settings = get_settings()
    previous = {key: getattr(settings, key) for key in values}
    for key, value in values.items():
        setattr(settings, key, value)
    try:
        yield settings
    finally:
        for key, value in previous.items():
            setattr(settings, key, value)


@pytest_asyncio.fixture
async def test_engine():
    """
    In-memory SQLite engine, one fresh schema per test.
    StaticPool keeps every session on the same connection so the data survives.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    session = session_factory()

    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient with the store app and overridden DB dependency.
    """
    from libs.db.session import get_async_db
    from services.store_service.app.main import app

    async def _get_test_db():
        yield db_session

    app.dependency_overrides[get_async_db] = _get_test_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
