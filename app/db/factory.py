"""
Database Adapter Factory

Picks the adapter from the scheme of the database URL.
"""

from typing import Optional

from app.core.setting import settings
from app.db.interface import DatabaseAdapter
from app.db.postgres_adapter import PostgreSQLAdapter
from app.db.sqlite_adapter import SQLiteAdapter


def get_database_adapter(database_url: Optional[str] = None) -> DatabaseAdapter:
    """
    Factory function to get the database adapter.

    Args:
        database_url: Connection string (defaults to settings.DATABASE_URL)

    Returns:
        DatabaseAdapter instance

    Raises:
        ValueError: If the URL scheme is not supported
    """
    database_url = database_url or settings.DATABASE_URL
    scheme = database_url.split(":", 1)[0]
    dialect = scheme.split("+", 1)[0]

    if dialect == "sqlite":
        return SQLiteAdapter()
    if dialect in ("postgresql", "postgres"):
        return PostgreSQLAdapter()
    raise ValueError(f"Unsupported database URL scheme: '{scheme}'")
