"""
Article Service

Read-only access to published articles. The view counting core only needs
to know whether an article exists and to load it for the detail endpoint;
editorial writes live elsewhere.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Article


class ArticleService:
    """Service for looking up articles."""

    def __init__(self, session: AsyncSession):
        """
        Initialize the article service with a database session.

        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def get_article(self, article_id: str) -> Optional[Article]:
        """
        Retrieve an article by id.

        Returns:
            Article if found, None otherwise
        """
        statement = select(Article).where(Article.id == article_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def article_exists(self, article_id: str) -> bool:
        statement = select(Article.id).where(Article.id == article_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none() is not None
