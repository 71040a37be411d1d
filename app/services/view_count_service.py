"""
View Count Service

This service increments the lifetime view counter on articles.

Design Decisions:
- Uses a database-level UPDATE for the increment, so concurrent
  increments never lose updates (no read-modify-write)
- Also stamps last_viewed_at, which the dashboard falls back to when the
  daily page-view table cannot be queried
- Commit is left to the caller
"""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dates import utcnow
from app.db.models import Article


class ViewCountService:
    """Service for managing lifetime article view counts."""

    def __init__(self, session: AsyncSession):
        """
        Initialize the view count service with a database session.

        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def increment_view_count(self, article_id: str) -> bool:
        """
        Increment the view count for an article by exactly one.

        Args:
            article_id: The article to increment the count for

        Returns:
            True if a row was updated, False if the article does not exist
        """
        statement = (
            update(Article)
            .where(Article.id == article_id)
            .values(
                view_count=Article.view_count + 1,
                last_viewed_at=utcnow(),
            )
        )

        result = await self.session.execute(statement)
        return result.rowcount == 1
