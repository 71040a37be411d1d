"""
Page View Service

Maintains one aggregate row per (article, calendar day) in page_views and
answers the time-series questions asked of it.

Design Decisions:
- Recording is a single INSERT ... ON CONFLICT DO UPDATE (built by the
  database adapter), so concurrent views of the same article on the same
  day never collapse into one and never create duplicate rows
- The calendar day is computed in the site time zone (app.core.dates)
- Read methods are best-effort telemetry: failures are logged and turned
  into zeros. count_views_between / count_views_by_day are the strict
  variants that raise DatabaseError, for callers that want to fall back
  to another signal
"""

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Dict, List, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dates import get_timezone, local_today, utcnow
from app.core.exceptions import DatabaseError
from app.db.factory import get_database_adapter
from app.db.interface import DatabaseAdapter
from app.db.models import PageView

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


class PageViewService:
    """
    Service for daily page-view aggregates.

    The service commits its own writes: recording a page view is
    independent of whatever else the caller's session is doing.
    """

    def __init__(
        self,
        session: AsyncSession,
        adapter: Optional[DatabaseAdapter] = None,
        clock: Callable[[], datetime] = utcnow,
        tz: Optional[tzinfo] = None
    ):
        """
        Initialize the page view service.

        Args:
            session: Async database session for database operations
            adapter: Database adapter building the dialect-specific upsert
                (defaults to the one matching settings.DATABASE_URL)
            clock: Returns the current aware datetime; injectable for tests
            tz: Time zone for calendar days (defaults to settings.SITE_TIMEZONE)
        """
        self.session = session
        self.adapter = adapter or get_database_adapter()
        self.clock = clock
        self.tz = tz or get_timezone()

    def _to_day(self, value: DateLike) -> date:
        if isinstance(value, datetime):
            return local_today(value, self.tz)
        return value

    async def record_page_view(self, article_id: str) -> bool:
        """
        Record one view of an article for today.

        Creates today's row with count=1 or increments the existing one.

        Args:
            article_id: The article that was viewed

        Returns:
            True if recorded, False if the store failed (logged, not raised)
        """
        now = self.clock()
        today = local_today(now, self.tz)
        statement = self.adapter.build_page_view_upsert(article_id, today, now)

        try:
            await self.session.execute(statement)
            await self.session.commit()
            return True
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                f"Failed to record page view for {article_id}: {str(e)}",
                exc_info=True
            )
            return False

    async def get_total_views_for_article(self, article_id: str) -> int:
        """
        Sum of daily counts for one article, across all days.

        Returns:
            Total views (0 if no rows exist or the query fails)
        """
        statement = (
            select(func.coalesce(func.sum(PageView.count), 0))
            .where(PageView.article_id == article_id)
        )
        try:
            result = await self.session.execute(statement)
            return int(result.scalar_one())
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                f"Failed to get total views for {article_id}: {str(e)}",
                exc_info=True
            )
            return 0

    async def count_views_between(self, start: DateLike, end: DateLike) -> int:
        """
        Sum of daily counts for all articles on days in [start, end].

        Datetimes are converted to their calendar day in the site time zone.

        Raises:
            DatabaseError: If the query fails
        """
        start_day, end_day = self._to_day(start), self._to_day(end)
        if start_day > end_day:
            return 0

        statement = (
            select(func.coalesce(func.sum(PageView.count), 0))
            .where(PageView.view_date >= start_day)
            .where(PageView.view_date <= end_day)
        )
        try:
            result = await self.session.execute(statement)
            return int(result.scalar_one())
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(
                f"Failed to count views between {start_day} and {end_day}",
                original_error=e
            )

    async def get_views_for_period(self, start: DateLike, end: DateLike) -> int:
        """
        Best-effort variant of count_views_between.

        Returns:
            Total views in the inclusive range, 0 on an empty range or failure
        """
        try:
            return await self.count_views_between(start, end)
        except DatabaseError as e:
            logger.error(f"Error getting views for period: {e.original_error}")
            return 0

    async def count_views_by_day(
        self,
        start: DateLike,
        end: DateLike,
        article_id: Optional[str] = None
    ) -> Dict[date, int]:
        """
        Per-day totals for days in [start, end], optionally for one article.

        Days without rows are absent from the result.

        Raises:
            DatabaseError: If the query fails
        """
        start_day, end_day = self._to_day(start), self._to_day(end)
        if start_day > end_day:
            return {}

        statement = (
            select(PageView.view_date, func.sum(PageView.count))
            .where(PageView.view_date >= start_day)
            .where(PageView.view_date <= end_day)
            .group_by(PageView.view_date)
        )
        if article_id is not None:
            statement = statement.where(PageView.article_id == article_id)

        try:
            result = await self.session.execute(statement)
            return {view_date: int(total) for view_date, total in result.all()}
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(
                f"Failed to group views between {start_day} and {end_day}",
                original_error=e
            )

    async def get_daily_views(self, article_id: str, days: int = 7) -> List[dict]:
        """
        Trailing daily series for one article, oldest day first.

        Returns:
            [{"date": "YYYY-MM-DD", "views": n}, ...] with one entry per day;
            all zeros if the query fails
        """
        today = local_today(self.clock(), self.tz)
        first_day = today - timedelta(days=days - 1)

        try:
            by_day = await self.count_views_by_day(first_day, today, article_id=article_id)
        except DatabaseError as e:
            logger.error(f"Error getting daily views for {article_id}: {e.original_error}")
            by_day = {}

        return [
            {
                "date": (first_day + timedelta(days=offset)).isoformat(),
                "views": by_day.get(first_day + timedelta(days=offset), 0),
            }
            for offset in range(days)
        ]
