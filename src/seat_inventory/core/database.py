"""
Database configuration and async session management
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from seat_inventory.core.config import settings

# Create declarative base for models
Base = declarative_base()


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def _enable_sqlite_write_serialization(engine: AsyncEngine) -> None:
    """
    SQLite ignores SELECT ... FOR UPDATE, so every transaction starts with
    BEGIN IMMEDIATE and takes the database write lock up front.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # disable the driver's own BEGIN so ours is the only one emitted
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_for(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings suited to the backend"""
    if _is_sqlite(url):
        engine = create_async_engine(
            url,
            echo=echo,
            connect_args={"timeout": 30},
        )
        _enable_sqlite_write_serialization(engine)
        return engine

    # Using asyncpg driver for PostgreSQL
    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=20,
        max_overflow=40,
    )


class Database:
    """Owns the engine and the session factory for one application instance"""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_engine_for(url, echo=echo)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Don't expire objects after commit
            autoflush=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.session_factory() as session:
            yield session

    async def create_all(self):
        """
        Create tables for every registered model.
        Only for development and tests - production schemas are managed outside the app.
        """
        # Import all models to register them with Base
        import seat_inventory.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self):
        """
        Drop all database tables.
        WARNING: Use only in development/testing!
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self):
        await self.engine.dispose()


def database_from_settings(url: Optional[str] = None) -> Database:
    return Database(url or settings.DATABASE_URL, echo=settings.DATABASE_ECHO)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI to provide database sessions.

    Services open their own transaction with `async with db.begin()`,
    so the session must not have autobegun before it reaches them.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
