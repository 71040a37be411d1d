"""
Background Task Helpers

Provides helper functions for background tasks that create their own database sessions.
Background tasks cannot use the endpoint's session as it's closed after the endpoint returns.
"""

import logging

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.services.page_view_service import PageViewService

logger = logging.getLogger(__name__)


async def record_page_view_background(
    article_id: str,
    session_factory: async_sessionmaker
) -> None:
    """
    Background task to record a page view when an article page is rendered.

    Failures are logged and dropped: rendering never depends on counting.

    Args:
        article_id: The article that was rendered
        session_factory: Factory for the task's own session
    """
    try:
        async with session_factory() as session:
            page_view_service = PageViewService(session)
            await page_view_service.record_page_view(article_id)
    except Exception as e:
        logger.error(
            f"Failed to record page view for {article_id}: {str(e)}",
            exc_info=True
        )
