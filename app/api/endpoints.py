"""
FastAPI Endpoints for the View Counting Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Path validation
- Rate limiting
- Error handling and HTTP responses
- Delegating to service layer

Design Principles:
- Thin endpoints: Only validation and rate limiting
- Service layer: All business logic
- Error handling: Proper HTTP status codes
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.schemas import (
    ArticleResponse,
    ArticleViewsResponse,
    DashboardStatsResponse,
    ViewResponse,
)
from app.core.cache_manager import get_view_cache
from app.core.exceptions import ContentNotFoundError, DatabaseError, InvalidContentIdError
from app.core.rate_limit import RATE_LIMITS, limiter
from app.core.setting import PageViewRecording, settings
from app.core.validators import sanitize_content_id
from app.db.session import get_session, get_session_factory
from app.services.article_service import ArticleService
from app.services.background_tasks import record_page_view_background
from app.services.dashboard_service import DashboardService
from app.services.stats_service import StatsService
from app.services.view_cache import ViewDedupCache
from app.services.view_tracking_service import ViewTrackingService

logger = logging.getLogger(__name__)

router = APIRouter()

ALREADY_COUNTED_MESSAGE = "already counted recently"


def _require_article_id(article_id: str) -> str:
    sanitized_id = sanitize_content_id(article_id)
    if not sanitized_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid article id: '{article_id}'. Ids must contain only letters, digits, '_' or '-'."
        )
    return sanitized_id


# ":path" lets an empty id reach the handler, which answers 400 instead of a routing 404
@router.post(
    "/articles/{article_id:path}/view",
    response_model=ViewResponse,
    response_model_exclude_none=True,
    summary="Count an article view",
    description="Counts one view of the article unless a view was counted within the throttle window"
)
@limiter.limit(RATE_LIMITS["view"])
async def increment_article_view(
    article_id: str,
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    session: AsyncSession = Depends(get_session),
    cache: ViewDedupCache = Depends(get_view_cache)
) -> ViewResponse:
    """
    Count a view of an article.

    Returns:
        ViewResponse; `message` is set when the view was throttled

    Raises:
        HTTPException 400: If the article id is empty or malformed
        HTTPException 404: If the article does not exist
        HTTPException 500: If the increment could not be persisted
        HTTPException 429: If rate limit exceeded
    """
    view_tracking_service = ViewTrackingService(
        session,
        cache,
        record_page_views=settings.PAGE_VIEW_RECORDING == PageViewRecording.endpoint
    )

    try:
        result = await view_tracking_service.register_view(article_id)
    except InvalidContentIdError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except ContentNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except DatabaseError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"Unexpected error counting view for {article_id!r}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error"
        )

    if not result.counted:
        return ViewResponse(success=True, message=ALREADY_COUNTED_MESSAGE)
    return ViewResponse(success=True)


@router.get(
    "/articles/{article_id}",
    response_model=ArticleResponse,
    summary="Get an article",
    description="Returns an article; records a daily page view when recording happens on render"
)
@limiter.limit(RATE_LIMITS["article"])
async def get_article(
    article_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> ArticleResponse:
    """
    Return an article for its detail page.

    Raises:
        HTTPException 400: If the article id is malformed
        HTTPException 404: If the article does not exist
    """
    article_id = _require_article_id(article_id)

    article = await ArticleService(session).get_article(article_id)
    if not article:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Article '{article_id}' not found"
        )

    if settings.PAGE_VIEW_RECORDING == PageViewRecording.render:
        background_tasks.add_task(
            record_page_view_background,
            article_id=article.id,
            session_factory=session_factory
        )

    return ArticleResponse(
        id=article.id,
        title=article.title,
        slug=article.slug,
        published_at=article.published_at,
        view_count=article.view_count,
        like_count=article.like_count,
        comment_count=article.comment_count,
    )


@router.get(
    "/articles/{article_id}/views",
    response_model=ArticleViewsResponse,
    summary="Get article view statistics",
    description="Returns the lifetime view count, the page-view total and the last 7 days"
)
@limiter.limit(RATE_LIMITS["views"])
async def get_article_views(
    article_id: str,
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> ArticleViewsResponse:
    """
    Get view statistics for an article.

    Raises:
        HTTPException 400: If the article id is malformed
        HTTPException 404: If the article does not exist
    """
    article_id = _require_article_id(article_id)

    stats = await StatsService(session).get_stats(article_id)
    if not stats:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Article '{article_id}' not found"
        )

    return ArticleViewsResponse(**stats)


@router.get(
    "/dashboard/stats",
    response_model=DashboardStatsResponse,
    summary="Get dashboard statistics",
    description="Totals, top lists, user growth and daily views for the operational dashboard"
)
@limiter.limit(RATE_LIMITS["dashboard"])
async def get_dashboard_stats(
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> DashboardStatsResponse:
    """Compute the dashboard rollups. Sub-query failures degrade to zeros."""
    stats = await DashboardService(session).get_dashboard_stats()
    return DashboardStatsResponse(**stats)
