"""
SQLAlchemy async database client for the contest entry service.

Provides async engine creation using SQLAlchemy Core with asyncpg. The engine
is built once at process start (see main.py lifespan) and injected into
EntryStore; nothing here holds a connection between requests.
"""

import os

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


def to_async_url(database_url: str) -> str:
    """
    Convert a plain PostgreSQL URL to its asyncpg form.

    Hosting providers hand out postgresql://, asyncpg needs
    postgresql+asyncpg://. Other URLs (sqlite+aiosqlite in tests) pass through.
    """
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


def create_engine_for(database_url: str, timeout_seconds: float = 10) -> AsyncEngine:
    """
    Create an async engine with bounded connect/command timeouts.

    Pool settings only apply to PostgreSQL; SQLite uses its defaults.
    """
    database_url = to_async_url(database_url)
    if database_url.startswith("postgresql+asyncpg://"):
        return create_async_engine(
            database_url,
            echo=os.environ.get("SQL_ECHO", "").lower() == "true",
            # Connection pool settings
            pool_size=5,
            max_overflow=10,
            pool_timeout=timeout_seconds,
            pool_recycle=1800,  # Recycle connections every 30 minutes
            connect_args={
                "timeout": timeout_seconds,
                "command_timeout": timeout_seconds,
            },
        )
    return create_async_engine(database_url)


def get_sync_database_url() -> str:
    """
    Get synchronous database URL for Alembic migrations and the job store.

    Alembic and APScheduler run synchronously, so we need a psycopg2 URL.
    """
    database_url = os.environ.get("DATABASE_URL", "")

    # Use psycopg2 driver for sync operations
    if "postgresql+asyncpg://" in database_url:
        return database_url.replace("postgresql+asyncpg://", "postgresql://")
    if database_url.startswith("postgresql://"):
        return database_url

    raise ValueError("DATABASE_URL must be set for migrations")
