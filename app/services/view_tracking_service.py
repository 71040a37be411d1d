"""
View Tracking Service

Decides whether a reported article view is counted, and counts it.

Flow for one report:
1. Validate the article id
2. Claim the id in the dedup cache (throttled -> not counted, no writes)
3. Verify the article exists (unknown -> claim released, NotFound)
4. Atomically increment Article.view_count and commit
5. Record today's page-view row (failures logged, never surfaced)
6. Prune expired cache entries once past the high-water mark

The dedup cache is authoritative for "counted recently"; client-side
markers only save network calls and can be bypassed.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ContentNotFoundError, DatabaseError, InvalidContentIdError
from app.core.validators import sanitize_content_id
from app.services.article_service import ArticleService
from app.services.page_view_service import PageViewService
from app.services.view_cache import ViewDedupCache
from app.services.view_count_service import ViewCountService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewResult:
    """Outcome of one view report."""
    article_id: str
    counted: bool
    page_view_recorded: bool = False


class ViewTrackingService:
    """
    Applies the throttle window and the persisted increments for article views.
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: ViewDedupCache,
        page_view_service: Optional[PageViewService] = None,
        record_page_views: bool = True
    ):
        """
        Initialize the view tracking service.

        Args:
            session: Async database session for database operations
            cache: Process-wide dedup cache
            page_view_service: Daily aggregator (defaults to one on `session`)
            record_page_views: Whether accepted views also update the daily rows
        """
        self.session = session
        self.cache = cache
        self.article_service = ArticleService(session)
        self.view_count_service = ViewCountService(session)
        self.page_view_service = page_view_service or PageViewService(session)
        self.record_page_views = record_page_views

    async def register_view(self, article_id: str) -> ViewResult:
        """
        Count a view of an article unless one was counted within the throttle window.

        Args:
            article_id: Raw article id from the request

        Returns:
            ViewResult with counted=False when throttled

        Raises:
            InvalidContentIdError: If the id is empty or malformed
            ContentNotFoundError: If no article has this id
            DatabaseError: If the increment could not be persisted
        """
        sanitized_id = sanitize_content_id(article_id)
        if sanitized_id is None:
            raise InvalidContentIdError(
                article_id,
                reason="Invalid article id. Ids must be 1-128 characters of [A-Za-z0-9_-]"
            )

        try:
            claimed_at = self.cache.claim(sanitized_id)
            if claimed_at is None:
                logger.debug(f"View for {sanitized_id} already counted recently")
                return ViewResult(article_id=sanitized_id, counted=False)

            try:
                await self._increment(sanitized_id)
            except Exception:
                self.cache.release(sanitized_id, claimed_at)
                raise

            recorded = False
            if self.record_page_views:
                recorded = await self.page_view_service.record_page_view(sanitized_id)

            return ViewResult(
                article_id=sanitized_id,
                counted=True,
                page_view_recorded=recorded
            )
        finally:
            self.cache.prune_if_needed()

    async def _increment(self, article_id: str) -> None:
        try:
            if not await self.article_service.article_exists(article_id):
                raise ContentNotFoundError(article_id)

            # The article can disappear between the check and the update
            if not await self.view_count_service.increment_view_count(article_id):
                raise ContentNotFoundError(article_id)

            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                f"Failed to increment view count for {article_id}: {str(e)}",
                exc_info=True
            )
            raise DatabaseError(
                f"Failed to increment view count for '{article_id}'",
                original_error=e
            )
