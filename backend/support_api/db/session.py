"""
External database session management.

WHY: The hosted ticket database is optional. The engine is only created
when ``EXTERNAL_DATABASE_URL`` is set, and request handlers receive
``None`` instead of a session when it is not.
"""

from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from support_api.core.config import settings


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_session_factory() -> Optional[async_sessionmaker[AsyncSession]]:
    """
    Get or create the session factory for the external database.

    WHY: pool_pre_ping recycles stale connections to the hosted database.
    expire_on_commit=False keeps loaded tickets usable after commit.

    Returns:
        Session factory, or None when no external database is configured
    """
    global _engine, _session_factory

    if not settings.external_store_enabled:
        return None

    if _session_factory is None:
        _engine = create_async_engine(
            settings.async_external_database_url,
            echo=settings.DEBUG,
            pool_pre_ping=True,
        )
        _session_factory = async_sessionmaker(
            _engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _session_factory


async def get_external_db() -> AsyncGenerator[Optional[AsyncSession], None]:
    """
    Dependency to get an external database session.

    Yields:
        AsyncSession for the request, or None when the external store is
        not configured
    """
    factory = get_session_factory()
    if factory is None:
        yield None
        return

    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Close pooled connections on shutdown."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
