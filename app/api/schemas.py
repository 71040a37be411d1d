"""
API Request and Response Schemas

This module defines all Pydantic models for API responses.
Separated from endpoints to keep concerns separated and enable reuse.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ViewResponse(BaseModel):
    """Response model for the view increment endpoint."""
    success: bool = Field(..., description="Always true when the report was accepted")
    message: Optional[str] = Field(
        default=None,
        description="Set to 'already counted recently' when the view was throttled"
    )


class ArticleResponse(BaseModel):
    """Response model for the article detail endpoint."""
    id: str
    title: str
    slug: str
    published_at: Optional[datetime] = None
    view_count: int
    like_count: int
    comment_count: int


class DailyViews(BaseModel):
    date: str = Field(..., description="Calendar day, YYYY-MM-DD")
    views: int


class ArticleViewsResponse(BaseModel):
    """Response model for the per-article statistics endpoint."""
    article_id: str
    view_count: int = Field(..., description="Lifetime view counter on the article")
    page_view_total: int = Field(..., description="Sum of the daily page-view rows")
    daily_views: List[DailyViews]


class CategoryStat(BaseModel):
    id: str
    name: str
    count: int


class ArticleStat(BaseModel):
    id: str
    title: str
    views: int
    likes: int
    comments: int


class UserGrowthStat(BaseModel):
    date: str = Field(..., description="Calendar month, YYYY-MM")
    count: int


class DashboardStatsResponse(BaseModel):
    """Response model for the dashboard endpoint."""
    total_articles: int
    total_categories: int
    total_users: int
    total_views: int
    articles_published_today: int
    articles_published_this_week: int
    articles_published_this_month: int
    top_categories: List[CategoryStat]
    top_articles: List[ArticleStat]
    user_growth: List[UserGrowthStat]
    views_by_day: List[DailyViews]
