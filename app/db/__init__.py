"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter / PostgreSQLAdapter: dialect implementations
- Session management: Database session creation and management

To add a new database backend:
1. Create a new adapter class inheriting from DatabaseAdapter
2. Implement all abstract methods
3. Register it in get_database_adapter() in factory.py
"""

from app.db.interface import DatabaseAdapter
from app.db.factory import get_database_adapter
from app.db.session import get_session, get_session_factory, async_session_maker, engine

__all__ = [
    "DatabaseAdapter",
    "get_database_adapter",
    "get_session",
    "get_session_factory",
    "async_session_maker",
    "engine",
]
