"""
Database Models for the View Counting Service

This module defines the SQLModel database schemas for:
- Article: Published content item carrying the lifetime view_count
- Category / ArticleCategory: Categories and the article-category links
- User: Registered readers (only used for growth statistics)
- PageView: One aggregate row per (article, calendar day)

Design Decisions:
- view_count denormalized on Article for fast top-N queries
- PageView kept in its own table so daily analytics never touch the
  hot article rows and can be partitioned or moved independently
- Unique constraint on (article_id, view_date) enforces one row per day,
  which the upsert in PageViewService relies on
- All timestamps are stored in UTC
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Integer, String, UniqueConstraint
from sqlmodel import Column, Field, SQLModel

from app.core.dates import utcnow


class Article(SQLModel, table=True):
    """
    Published article.

    Fields:
    - id: Opaque id assigned by the content store
    - slug: URL slug used by the public pages
    - view_count: Lifetime view counter (incremented atomically)
    - last_viewed_at: Time of the last accepted increment

    Indexes:
    - slug: Unique, used for page lookups
    - published_at: For "published today / this week / this month"
    - view_count: For top articles
    """
    __tablename__ = "articles"

    id: str = Field(sa_column=Column(String(128), primary_key=True))
    title: str = Field(sa_column=Column(String(300), nullable=False))
    slug: str = Field(sa_column=Column(String(300), nullable=False, unique=True, index=True))
    published_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True, index=True)
    )
    view_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0, index=True))
    like_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    comment_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    last_viewed_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True, index=True)
    )


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: str = Field(sa_column=Column(String(128), primary_key=True))
    name: str = Field(sa_column=Column(String(200), nullable=False))
    slug: str = Field(sa_column=Column(String(200), nullable=False, unique=True))


class ArticleCategory(SQLModel, table=True):
    """Link table between articles and categories (an article has many)."""
    __tablename__ = "article_categories"

    article_id: str = Field(sa_column=Column(String(128), primary_key=True))
    category_id: str = Field(sa_column=Column(String(128), primary_key=True, index=True))


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(sa_column=Column(String(128), primary_key=True))
    email: str = Field(sa_column=Column(String(320), nullable=False, unique=True))
    display_name: Optional[str] = Field(default=None, sa_column=Column(String(200), nullable=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )


class PageView(SQLModel, table=True):
    """
    Daily page-view aggregate.

    Fields:
    - article_id: Article the views belong to
    - view_date: Calendar day in the site time zone
    - count: Views recorded for that article on that day
    - created_at: When the first view of the day was recorded
    - last_updated: When the row was last incremented

    Design Rationale:
    - Separate from Article.view_count: this table feeds time-series
      analytics, the counter on Article feeds lifetime totals
    - Rows are never deleted here; retention is handled outside the service
    """
    __tablename__ = "page_views"
    __table_args__ = (
        UniqueConstraint("article_id", "view_date", name="uq_page_views_article_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    article_id: str = Field(sa_column=Column(String(128), nullable=False, index=True))
    view_date: date = Field(sa_column=Column(Date, nullable=False, index=True))
    count: int = Field(default=1, sa_column=Column(Integer, nullable=False, default=1))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    last_updated: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
