"""
Database Abstraction Interface

This module defines the database abstraction layer that allows switching between
different database backends (SQLite, PostgreSQL, etc.) without changing the
rest of the codebase.

Besides engine configuration, adapters own the one statement whose syntax
depends on the dialect: the atomic "insert or increment" used for daily
page-view rows.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.pool import Pool
from sqlalchemy.sql.dml import Insert


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    This interface defines the contract that all database implementations
    must follow. By using this abstraction, we can switch between SQLite,
    PostgreSQL, or any other database without modifying the rest of the codebase.

    To add a new database backend:
    1. Create a new class inheriting from DatabaseAdapter
    2. Implement all abstract methods
    3. Register it in app.db.factory.get_database_adapter
    """

    @abstractmethod
    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create and configure the async database engine.

        Args:
            database_url: Connection string for the database
            **kwargs: Additional engine configuration options

        Returns:
            Configured AsyncEngine instance
        """
        pass

    @abstractmethod
    def get_pool_class(self) -> Optional[type[Pool]]:
        """
        Get the connection pool class for this database type.

        Returns:
            Pool class, or None to use the SQLAlchemy default
        """
        pass

    @abstractmethod
    def get_connect_args(self) -> dict[str, Any]:
        """Get connection arguments specific to this database type."""
        pass

    @abstractmethod
    def get_engine_kwargs(self) -> dict[str, Any]:
        """Get additional engine configuration specific to this database type."""
        pass

    @abstractmethod
    def get_insert_construct(self) -> Callable[..., Insert]:
        """
        Get the dialect's INSERT construct supporting ON CONFLICT.

        Returns:
            e.g. sqlalchemy.dialects.sqlite.insert
        """
        pass

    @abstractmethod
    def get_dialect_name(self) -> str:
        """
        Get the SQLAlchemy dialect name for this database.

        Returns:
            Dialect name (e.g., 'sqlite', 'postgresql')
        """
        pass

    def build_page_view_upsert(self, article_id: str, view_date: date, now: datetime) -> Insert:
        """
        Build the atomic upsert for one daily page-view row.

        Inserts (article_id, view_date) with count=1, or increments the
        existing row's count and refreshes last_updated. The conflict target
        is the uq_page_views_article_day constraint.

        Args:
            article_id: Article the view belongs to
            view_date: Calendar day in the site time zone
            now: Timestamp written to created_at / last_updated

        Returns:
            Executable INSERT ... ON CONFLICT DO UPDATE statement
        """
        from app.db.models import PageView

        table = PageView.__table__
        insert = self.get_insert_construct()
        statement = insert(table).values(
            article_id=article_id,
            view_date=view_date,
            count=1,
            created_at=now,
            last_updated=now,
        )
        return statement.on_conflict_do_update(
            index_elements=[table.c.article_id, table.c.view_date],
            set_={
                "count": table.c.count + 1,
                "last_updated": statement.excluded.last_updated,
            },
        )
