"""
Database Session Management

This module handles async database connections using SQLAlchemy's async engine.
Uses a database abstraction layer to support different database backends.

Key Features:
- Database abstraction: the adapter is picked from DATABASE_URL
- Async session management: Proper async context management
- Error handling: Automatic rollback on exceptions
- Session factory dependency: background tasks open their own sessions
  from the factory returned by get_session_factory(), which tests override
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from app.core.setting import settings
from app.db.factory import get_database_adapter

db_adapter = get_database_adapter(settings.DATABASE_URL)

engine = db_adapter.create_engine(settings.DATABASE_URL)

async_session_maker = async_sessionmaker(
    engine,
    class_=SQLModelAsyncSession,
    expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get database session.

    This function:
    - Creates a new async session
    - Yields it to the endpoint
    - Automatically commits on success
    - Rolls back on exception

    Usage in FastAPI:
        @router.get("/endpoint")
        async def endpoint(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """
    Dependency returning the session factory.

    Background tasks run after the request session is closed, so they
    open a session of their own from this factory.
    """
    return async_session_maker


async def create_all_tables() -> None:
    """Create any missing tables (development convenience; production uses Alembic)."""
    from sqlmodel import SQLModel
    from app.db import models  # noqa: F401  registers the tables on SQLModel.metadata

    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
