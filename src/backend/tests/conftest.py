"""
Pytest fixtures for the voting backend tests.
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# Set test environment variables before importing app
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./muthyam-test.db")
os.environ.setdefault("VOTING_MODE", "quota")
os.environ.setdefault("TRUST_PROXY", "true")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")

class FakeChannel:
    """Notification channel that records what was published."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any, Optional[str]]] = []

    async def publish(self, event: str, data: Any, room: Optional[str] = None) -> None:
        self.events.append((event, data, room))

    def named(self, event: str) -> list[Any]:
        return [data for name, data, _ in self.events if name == event]


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
async def engine(tmp_path: Any) -> AsyncGenerator[AsyncEngine, None]:
    """A fresh SQLite database file per test, with all tables created."""
    import models  # noqa: F401
    from db.base import Base
    from db.session import create_engine_for_url

    test_engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the per-test database."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """A session on the per-test database."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_channel() -> FakeChannel:
    """Recording notification channel."""
    return FakeChannel()


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> Any:
    """Rate limit counters never leak between tests."""
    from services.rate_limiter import rate_limiter

    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def create_contestant(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Any]]:
    """Factory that commits a contestant and returns it."""
    from repositories.contestant_repository import ContestantRepository

    async def _create(name: str = "Contestant", votes: int = 0, is_active: bool = True) -> Any:
        async with session_factory() as session:
            contestant = await ContestantRepository(session).create(
                name=name,
                description=f"{name} is a housemate",
                image=f"images/{name.lower().replace(' ', '-')}.jpg",
                votes=votes,
                is_active=is_active,
            )
            await session.commit()
            return contestant

    return _create


@pytest.fixture
def create_post(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Any]]:
    """Factory that commits a blog post and returns it."""
    from repositories.blog_repository import BlogPostRepository

    async def _create(title: str = "Weekly Meme Roundup", **fields: Any) -> Any:
        data = {
            "title": title,
            "content": "<p>The funniest moments from the house this week.</p>",
            "featured_image": "images/blog-post-1.jpg",
            "category": "memes",
            "is_published": True,
        }
        data.update(fields)
        async with session_factory() as session:
            post = await BlogPostRepository(session).create(data)
            await session.commit()
            return post

    return _create


@pytest.fixture
async def app(
    session_factory: async_sessionmaker[AsyncSession],
    fake_channel: FakeChannel,
) -> AsyncGenerator[Any, None]:
    """FastAPI application wired to the per-test database and a recording channel."""
    from db.session import get_db
    from main import app as fastapi_app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.state.notification_channel = fake_channel
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.notification_channel = None


@pytest.fixture
async def client(app: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create a mock database session."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session
