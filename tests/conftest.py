"""Pytest fixtures for testing."""
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from core.config import Settings
from db.session import build_engine, build_session_factory
from models.base import Base


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite database file."""
    return Settings(
        _env_file=None,  # Don't load from .env file
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
    )


@pytest.fixture
async def async_engine(settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create an async engine with all tables for testing."""
    engine = build_engine(settings.database_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """
    Session for seeding and inspecting the test database directly.

    Commit after seeding; an open write transaction would block the app's writes.
    """
    session_factory = build_session_factory(async_engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def app(settings: Settings, async_engine: AsyncEngine) -> AsyncGenerator[FastAPI]:
    """Application built from the test settings, sharing the test engine."""
    from api.main import create_app
    from db.session import get_async_session

    test_app = create_app(settings)
    session_factory = build_session_factory(async_engine)

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    test_app.dependency_overrides[get_async_session] = override_get_async_session

    yield test_app

    test_app.dependency_overrides.clear()
    await test_app.state.engine.dispose()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create a test client bound to the app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client
