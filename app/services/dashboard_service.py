"""
Dashboard Service

Read-only rollups for the operational dashboard.

Design Decisions:
- Everything is computed at request time from full scans or ranged
  queries; the dashboard is low traffic and eventually consistent
- Each sub-query is isolated: a failure rolls the session back, logs a
  warning and substitutes 0 / an empty list, so one broken query never
  takes the whole dashboard down
- Daily views come from page_views. If that table cannot be queried the
  service falls back to counting articles whose last_viewed_at falls on
  the day, which undercounts (one per article, not one per view)
- Day and month buckets use the site time zone, like the daily rows
"""

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dates import (
    day_bounds_utc,
    get_timezone,
    local_today,
    month_start,
    shift_months,
    start_of_day_utc,
    utcnow,
)
from app.core.exceptions import DatabaseError
from app.core.setting import settings
from app.db.models import Article, ArticleCategory, Category, User
from app.services.page_view_service import PageViewService

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_GROWTH_MONTHS = 6
VIEWS_BY_DAY_DAYS = 7
UNKNOWN_CATEGORY_NAME = "Unknown category"


class DashboardService:
    """Service computing dashboard statistics."""

    def __init__(
        self,
        session: AsyncSession,
        page_view_service: Optional[PageViewService] = None,
        clock: Callable[[], datetime] = utcnow,
        tz: Optional[tzinfo] = None,
        top_n: Optional[int] = None
    ):
        """
        Initialize the dashboard service.

        Args:
            session: Async database session for database operations
            page_view_service: Source of daily view totals
            clock: Returns the current aware datetime; injectable for tests
            tz: Time zone for day/month buckets (defaults to settings.SITE_TIMEZONE)
            top_n: Size of the top categories / top articles lists
        """
        self.session = session
        self.clock = clock
        self.tz = tz or get_timezone()
        self.page_view_service = page_view_service or PageViewService(
            session, clock=clock, tz=self.tz
        )
        self.top_n = top_n if top_n is not None else settings.DASHBOARD_TOP_N

    async def _safe(self, label: str, query: Callable[[], Awaitable[T]], default: T) -> T:
        try:
            return await query()
        except (SQLAlchemyError, DatabaseError) as e:
            await self.session.rollback()
            logger.warning(f"Dashboard query '{label}' failed, using {default!r}: {e}")
            return default

    async def _scalar(self, statement) -> int:
        result = await self.session.execute(statement)
        return int(result.scalar_one() or 0)

    async def get_dashboard_stats(self) -> dict:
        """
        Compute every dashboard rollup.

        Returns:
            Dictionary with totals, publication counts, top lists,
            user growth (6 months) and views by day (7 days)
        """
        today = local_today(self.clock(), self.tz)

        total_articles = await self._safe(
            "total_articles",
            lambda: self._scalar(select(func.count()).select_from(Article)),
            0
        )
        total_categories = await self._safe(
            "total_categories",
            lambda: self._scalar(select(func.count()).select_from(Category)),
            0
        )
        total_users = await self._safe(
            "total_users",
            lambda: self._scalar(select(func.count()).select_from(User)),
            0
        )
        total_views = await self._safe(
            "total_views",
            lambda: self._scalar(select(func.coalesce(func.sum(Article.view_count), 0))),
            0
        )

        published_since = {
            "today": today,
            "this_week": today - timedelta(days=7),
            "this_month": shift_months(today, -1),
        }
        published = {}
        for label, since in published_since.items():
            published[label] = await self._safe(
                f"articles_published_{label}",
                lambda since=since: self._count_published_since(since),
                0
            )

        return {
            "total_articles": total_articles,
            "total_categories": total_categories,
            "total_users": total_users,
            "total_views": total_views,
            "articles_published_today": published["today"],
            "articles_published_this_week": published["this_week"],
            "articles_published_this_month": published["this_month"],
            "top_categories": await self._safe("top_categories", self.get_top_categories, []),
            "top_articles": await self._safe("top_articles", self.get_top_articles, []),
            "user_growth": await self.get_user_growth(today),
            "views_by_day": await self.get_views_by_day(today),
        }

    async def _count_published_since(self, since: date) -> int:
        statement = (
            select(func.count())
            .select_from(Article)
            .where(Article.published_at >= start_of_day_utc(since, self.tz))
        )
        return await self._scalar(statement)

    async def get_top_categories(self) -> List[dict]:
        """
        Categories with the most articles, most first.

        Links pointing at a missing category are reported under
        UNKNOWN_CATEGORY_NAME.
        """
        article_count = func.count(ArticleCategory.article_id).label("article_count")
        statement = (
            select(ArticleCategory.category_id, Category.name, article_count)
            .join(Article, Article.id == ArticleCategory.article_id)
            .outerjoin(Category, Category.id == ArticleCategory.category_id)
            .group_by(ArticleCategory.category_id, Category.name)
            .order_by(article_count.desc(), ArticleCategory.category_id)
            .limit(self.top_n)
        )
        result = await self.session.execute(statement)
        return [
            {"id": category_id, "name": name or UNKNOWN_CATEGORY_NAME, "count": count}
            for category_id, name, count in result.all()
        ]

    async def get_top_articles(self) -> List[dict]:
        """Most viewed articles by lifetime view_count."""
        statement = (
            select(Article)
            .order_by(Article.view_count.desc(), Article.id)
            .limit(self.top_n)
        )
        result = await self.session.execute(statement)
        return [
            {
                "id": article.id,
                "title": article.title,
                "views": article.view_count,
                "likes": article.like_count,
                "comments": article.comment_count,
            }
            for article in result.scalars().all()
        ]

    async def get_user_growth(self, today: date) -> List[dict]:
        """
        New users per calendar month over the trailing six months
        (current month included), oldest first.
        """
        growth = []
        current_month = month_start(today)
        for months_back in range(USER_GROWTH_MONTHS - 1, -1, -1):
            first_day = shift_months(current_month, -months_back)
            next_first_day = shift_months(first_day, 1)
            count = await self._safe(
                f"user_growth_{first_day:%Y-%m}",
                lambda first_day=first_day, next_first_day=next_first_day: self._scalar(
                    select(func.count())
                    .select_from(User)
                    .where(User.created_at >= start_of_day_utc(first_day, self.tz))
                    .where(User.created_at < start_of_day_utc(next_first_day, self.tz))
                ),
                0
            )
            growth.append({"date": f"{first_day:%Y-%m}", "count": count})
        return growth

    async def get_views_by_day(self, today: date) -> List[dict]:
        """
        Views per day over the trailing seven days (today included), oldest first.
        """
        days = [today - timedelta(days=offset) for offset in range(VIEWS_BY_DAY_DAYS - 1, -1, -1)]

        try:
            by_day = await self.page_view_service.count_views_by_day(days[0], days[-1])
        except DatabaseError as e:
            logger.warning(
                f"page_views may not exist, approximating views by day "
                f"from last_viewed_at: {e.original_error}"
            )
            by_day = await self._approximate_views_by_day(days)

        return [{"date": day.isoformat(), "views": by_day.get(day, 0)} for day in days]

    async def _approximate_views_by_day(self, days: List[date]) -> Dict[date, int]:
        approximated = {}
        for day in days:
            start, end = day_bounds_utc(day, self.tz)
            approximated[day] = await self._safe(
                f"viewed_articles_{day.isoformat()}",
                lambda start=start, end=end: self._scalar(
                    select(func.count())
                    .select_from(Article)
                    .where(Article.last_viewed_at >= start)
                    .where(Article.last_viewed_at < end)
                ),
                0
            )
        return approximated
