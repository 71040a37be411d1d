"""
API tests for the view, article, statistics and dashboard endpoints.
"""

import pytest

from app.core.setting import PageViewRecording, settings
from conftest import read_page_view_rows, read_view_count


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_view_scenario(client, article, clock, session_factory):
    first = await client.post("/articles/a1/view")
    assert first.status_code == 200
    assert first.json() == {"success": True}
    assert await read_view_count(session_factory, "a1") == 1
    rows = await read_page_view_rows(session_factory, "a1")
    assert [count for _, count in rows] == [1]

    second = await client.post("/articles/a1/view")
    assert second.status_code == 200
    assert second.json() == {"success": True, "message": "already counted recently"}
    assert await read_view_count(session_factory, "a1") == 1

    clock.advance(61)
    third = await client.post("/articles/a1/view")
    assert third.json() == {"success": True}
    assert await read_view_count(session_factory, "a1") == 2
    rows = await read_page_view_rows(session_factory, "a1")
    assert sum(count for _, count in rows) == 2


@pytest.mark.asyncio
async def test_view_unknown_article_is_404(client, article, view_cache, session_factory):
    response = await client.post("/articles/nope/view")

    assert response.status_code == 404
    assert "nope" not in view_cache
    assert await read_view_count(session_factory, "a1") == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/articles//view", "/articles/%20/view", "/articles/a.b/view"])
async def test_view_invalid_id_is_400(client, view_cache, path):
    response = await client.post(path)

    assert response.status_code == 400
    assert len(view_cache) == 0


@pytest.mark.asyncio
async def test_view_store_failure_is_500(client, engine):
    from app.db.models import Article

    async with engine.begin() as connection:
        await connection.run_sync(Article.__table__.drop)

    response = await client.post("/articles/a1/view")
    assert response.status_code == 500


@pytest.mark.asyncio
async def test_get_article(client, article):
    response = await client.get("/articles/a1")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "a1"
    assert body["slug"] == "city-council-approves-new-tram-line"
    assert body["view_count"] == 0


@pytest.mark.asyncio
async def test_get_article_not_found(client):
    response = await client.get("/articles/missing")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_render_mode_records_page_view_on_article_read(client, article, session_factory, monkeypatch):
    monkeypatch.setattr(settings, "PAGE_VIEW_RECORDING", PageViewRecording.render)

    await client.get("/articles/a1")
    response = await client.post("/articles/a1/view")
    assert response.json() == {"success": True}

    rows = await read_page_view_rows(session_factory, "a1")
    assert [count for _, count in rows] == [1]
    assert await read_view_count(session_factory, "a1") == 1


@pytest.mark.asyncio
async def test_endpoint_mode_does_not_record_on_article_read(client, article, session_factory):
    assert settings.PAGE_VIEW_RECORDING == PageViewRecording.endpoint

    await client.get("/articles/a1")

    assert await read_page_view_rows(session_factory, "a1") == []


@pytest.mark.asyncio
async def test_article_views(client, article):
    await client.post("/articles/a1/view")

    response = await client.get("/articles/a1/views")

    assert response.status_code == 200
    body = response.json()
    assert body["article_id"] == "a1"
    assert body["view_count"] == 1
    assert body["page_view_total"] == 1
    assert len(body["daily_views"]) == 7
    assert body["daily_views"][-1]["views"] == 1


@pytest.mark.asyncio
async def test_article_views_not_found(client):
    response = await client.get("/articles/missing/views")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_dashboard_stats(client, article):
    await client.post("/articles/a1/view")

    response = await client.get("/dashboard/stats")

    assert response.status_code == 200
    body = response.json()
    assert body["total_articles"] == 1
    assert body["total_views"] == 1
    assert body["top_articles"][0]["id"] == "a1"
    assert len(body["user_growth"]) == 6
    assert len(body["views_by_day"]) == 7
    assert body["views_by_day"][-1]["views"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("enabled, expected_calls", [(True, 1), (False, 0)])
async def test_startup_creates_tables_only_when_enabled(monkeypatch, enabled, expected_calls):
    import app.main as main

    calls = []

    async def fake_create_all_tables():
        calls.append(True)

    monkeypatch.setattr(main, "create_all_tables", fake_create_all_tables)
    monkeypatch.setattr(settings, "CREATE_TABLES_ON_STARTUP", enabled)

    await main.startup_event()
    try:
        assert len(calls) == expected_calls
        assert main.app.state.view_cache is not None
    finally:
        await main.shutdown_event()

    assert main.app.state.view_cache is None
