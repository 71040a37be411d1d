"""
Tests for ViewTrackingService: the decision whether a view is counted.
"""

import asyncio

import pytest
import pytest_asyncio

from app.core.exceptions import ContentNotFoundError, DatabaseError, InvalidContentIdError
from app.db.models import PageView
from app.services.page_view_service import PageViewService
from app.services.view_tracking_service import ViewTrackingService
from conftest import FIXED_NOW, FakeDateTimeClock, read_page_view_rows, read_view_count


@pytest_asyncio.fixture
async def service(session, view_cache):
    page_view_service = PageViewService(session, clock=FakeDateTimeClock())
    return ViewTrackingService(session, view_cache, page_view_service=page_view_service)


@pytest.mark.asyncio
async def test_first_view_is_counted(service, article, session_factory):
    result = await service.register_view("a1")

    assert result.counted
    assert result.page_view_recorded
    assert await read_view_count(session_factory, "a1") == 1
    assert await read_page_view_rows(session_factory, "a1") == [(FIXED_NOW.date(), 1)]


@pytest.mark.asyncio
async def test_second_view_within_window_is_not_counted(service, article, session_factory, clock):
    await service.register_view("a1")
    clock.advance(10)
    result = await service.register_view("a1")

    assert not result.counted
    assert await read_view_count(session_factory, "a1") == 1
    assert await read_page_view_rows(session_factory, "a1") == [(FIXED_NOW.date(), 1)]


@pytest.mark.asyncio
async def test_views_further_apart_than_window_are_both_counted(service, article, session_factory, clock):
    await service.register_view("a1")
    clock.advance(61)
    result = await service.register_view("a1")

    assert result.counted
    assert await read_view_count(session_factory, "a1") == 2
    assert await read_page_view_rows(session_factory, "a1") == [(FIXED_NOW.date(), 2)]


@pytest.mark.asyncio
async def test_unknown_article_raises_not_found_without_side_effects(service, article, view_cache, session_factory):
    with pytest.raises(ContentNotFoundError):
        await service.register_view("missing")

    assert "missing" not in view_cache
    assert await read_view_count(session_factory, "a1") == 0
    assert await read_page_view_rows(session_factory, "missing") == []


@pytest.mark.asyncio
async def test_not_found_does_not_throttle_later_reports(service, view_cache, session_factory):
    with pytest.raises(ContentNotFoundError):
        await service.register_view("late")

    async with session_factory() as session:
        from app.db.models import Article
        session.add(Article(id="late", title="Late", slug="late"))
        await session.commit()

    result = await service.register_view("late")
    assert result.counted


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_id", ["", "   ", None, "a/b", "../etc", "x" * 129])
async def test_invalid_id_raises_without_cache_write(service, view_cache, bad_id):
    with pytest.raises(InvalidContentIdError):
        await service.register_view(bad_id)

    assert len(view_cache) == 0


@pytest.mark.asyncio
async def test_id_is_stripped(service, article, session_factory):
    result = await service.register_view("  a1 ")

    assert result.article_id == "a1"
    assert await read_view_count(session_factory, "a1") == 1


@pytest.mark.asyncio
async def test_page_view_recording_can_be_disabled(session, view_cache, article, session_factory):
    service = ViewTrackingService(session, view_cache, record_page_views=False)
    result = await service.register_view("a1")

    assert result.counted
    assert not result.page_view_recorded
    assert await read_view_count(session_factory, "a1") == 1
    assert await read_page_view_rows(session_factory, "a1") == []


@pytest.mark.asyncio
async def test_page_view_failure_does_not_fail_the_increment(engine, session, view_cache, article, session_factory):
    async with engine.begin() as connection:
        await connection.run_sync(PageView.__table__.drop)

    service = ViewTrackingService(session, view_cache)
    result = await service.register_view("a1")

    assert result.counted
    assert not result.page_view_recorded
    assert await read_view_count(session_factory, "a1") == 1


@pytest.mark.asyncio
async def test_store_failure_raises_database_error_and_releases_claim(engine, session, view_cache):
    from app.db.models import Article

    async with engine.begin() as connection:
        await connection.run_sync(Article.__table__.drop)

    service = ViewTrackingService(session, view_cache)
    with pytest.raises(DatabaseError):
        await service.register_view("a1")

    assert "a1" not in view_cache


@pytest.mark.asyncio
async def test_concurrent_reports_count_once(session_factory, view_cache, article):
    async def report():
        async with session_factory() as session:
            service = ViewTrackingService(session, view_cache, record_page_views=False)
            return await service.register_view("a1")

    results = await asyncio.gather(*(report() for _ in range(10)))

    assert sum(result.counted for result in results) == 1
    assert await read_view_count(session_factory, "a1") == 1


@pytest.mark.asyncio
async def test_triggering_call_prunes_expired_entries(service, view_cache, article, clock, session_factory):
    for index in range(1000):
        view_cache.claim(f"stale{index}")
    clock.advance(61)

    result = await service.register_view("a1")

    assert result.counted
    assert len(view_cache) == 1
    assert view_cache.claim("a1") is None
    assert await read_view_count(session_factory, "a1") == 1
