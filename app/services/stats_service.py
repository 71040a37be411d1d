"""
Statistics Service

Per-article view statistics, combining the lifetime counter on the article
with the daily page-view aggregates.

The two totals are maintained independently and can drift (page views are
best-effort, and the render path may record rows without an increment), so
both are reported rather than reconciled.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.article_service import ArticleService
from app.services.page_view_service import PageViewService


class StatsService:
    """Service for retrieving article view statistics."""

    def __init__(self, session: AsyncSession, page_view_service: Optional[PageViewService] = None):
        """
        Initialize the stats service with a database session.

        Args:
            session: Async database session for database operations
            page_view_service: Daily aggregator (defaults to one on `session`)
        """
        self.session = session
        self.article_service = ArticleService(session)
        self.page_view_service = page_view_service or PageViewService(session)

    async def get_stats(self, article_id: str, days: int = 7) -> Optional[dict]:
        """
        Get view statistics for an article.

        Returns:
            Dictionary with:
            - article_id
            - view_count: Lifetime counter on the article
            - page_view_total: Sum of all daily page-view rows
            - daily_views: Trailing per-day series (oldest first)

        Returns None if the article is not found.
        """
        article = await self.article_service.get_article(article_id)
        if not article:
            return None

        return {
            "article_id": article.id,
            "view_count": article.view_count,
            "page_view_total": await self.page_view_service.get_total_views_for_article(article.id),
            "daily_views": await self.page_view_service.get_daily_views(article.id, days=days),
        }
