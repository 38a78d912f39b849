"""
Async engine and request-scoped sessions.

Sessions keep loaded objects usable after commit (expire_on_commit=False):
authorization reads roles and grants from the loaded user synchronously,
so nothing may be expired behind its back.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

from changetracker.core.config import DatabaseSettings, settings


def build_engine(db_settings: DatabaseSettings) -> AsyncEngine:
    return create_async_engine(
        str(db_settings.url),
        echo=db_settings.echo,
        pool_size=db_settings.pool_size,
        max_overflow=db_settings.pool_overflow,
        pool_pre_ping=True,
    )


engine = build_engine(settings.database)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request: commit on success, roll back on any error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    await engine.dispose()
