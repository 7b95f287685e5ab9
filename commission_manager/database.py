"""
Database engine and session factory.

The engine is created once by the caller and passed around explicitly;
there is no module-level client.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from commission_manager.config.settings import Settings
from commission_manager.models import Base


def create_engine(settings: Settings) -> AsyncEngine:
    """
    Create async engine from settings.

    SQLite connections get foreign key enforcement turned on.

    Args:
        settings: Application settings

    Returns:
        Async engine
    """
    engine = create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
    )

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    logger.debug(
        "Database engine created",
        extra={"dialect": engine.dialect.name},
    )
    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory bound to engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def session_scope(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Provide a session for one unit of work.

    Rolls back uncommitted work when the block raises.
    """
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_database(engine: AsyncEngine) -> None:
    """Create all tables (checkfirst=True)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    logger.info("Database tables created")
