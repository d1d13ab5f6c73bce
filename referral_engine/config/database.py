"""
Database engine and session factory.

Creating the engine does not open a connection; the first session
checkout does.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from referral_engine.config.settings import settings


def create_engine(pooled: bool = True) -> AsyncEngine:
    """
    Create async engine from settings.

    Args:
        pooled: Use the default connection pool. Workers that run each
            task in a fresh event loop should pass False (NullPool).

    Returns:
        Configured AsyncEngine
    """
    if pooled:
        return create_async_engine(
            settings.database_url,
            echo=settings.database_echo,
            pool_pre_ping=True,
        )
    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        poolclass=NullPool,
    )


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to engine."""
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)
