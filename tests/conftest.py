"""
Shared test fixtures.

- An in-memory aiosqlite database on a StaticPool, so every session in a
  test sees the same data
- A fake monotonic clock driving the dedup cache's throttle window
- An httpx AsyncClient talking to the app through ASGITransport, with the
  session, session factory and view cache dependencies overridden
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from app.core.cache_manager import get_view_cache
from app.core.rate_limit import limiter
from app.db import models  # noqa: F401  registers the tables on SQLModel.metadata
from app.db.models import Article, PageView
from app.db.session import get_session, get_session_factory
from app.services.view_cache import ViewDedupCache

FIXED_NOW = datetime(2025, 3, 14, 15, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock returning a manually advanced number of seconds."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDateTimeClock:
    """Callable clock returning a manually set aware datetime."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def view_cache(clock):
    return ViewDedupCache(window_seconds=60.0, high_water_mark=1000, clock=clock)


@pytest_asyncio.fixture
async def article(session_factory):
    async with session_factory() as session:
        article = Article(
            id="a1",
            title="City council approves new tram line",
            slug="city-council-approves-new-tram-line",
            published_at=FIXED_NOW,
        )
        session.add(article)
        await session.commit()
    return article


@pytest_asyncio.fixture
async def client(session_factory, view_cache):
    from app.main import app

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_view_cache] = lambda: view_cache
    limiter.enabled = False

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    limiter.enabled = True


async def read_view_count(session_factory, article_id: str) -> int:
    async with session_factory() as session:
        result = await session.execute(select(Article.view_count).where(Article.id == article_id))
        return result.scalar_one()


async def read_page_view_rows(session_factory, article_id: str) -> list:
    """(view_date, count) pairs for an article, read through a fresh session."""
    async with session_factory() as session:
        result = await session.execute(
            select(PageView.view_date, PageView.count)
            .where(PageView.article_id == article_id)
            .order_by(PageView.view_date)
        )
        return [tuple(row) for row in result.all()]
