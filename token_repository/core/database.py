"""Engine and session construction for the token table.

Nothing connects at import time. Callers that own a unit of work (the
purge script, an application wiring its own sessions) build an engine from
TokenSettings and open one transaction with token_session().
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from token_repository.core.config import TokenSettings, settings


def build_engine(config: TokenSettings | None = None) -> AsyncEngine:
    """Create an async engine for the configured token database.

    Args:
        config: Settings. Defaults to the module-level settings.

    Returns:
        AsyncEngine using the asyncpg driver. SQL echo is on in development.
    """
    config = config or settings
    return create_async_engine(
        config.database_url,
        echo=config.environment == "development",
        pool_pre_ping=True,
    )


@asynccontextmanager
async def token_session(
    config: TokenSettings | None = None,
) -> AsyncIterator[AsyncSession]:
    """Open a session holding one transaction, then dispose of the engine.

    The transaction commits when the block exits normally and rolls back
    when it raises. Token stores built on the session never commit
    themselves.

    Args:
        config: Settings. Defaults to the module-level settings.

    Yields:
        AsyncSession with a transaction already begun.
    """
    engine = build_engine(config)
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    try:
        async with session_factory.begin() as session:
            yield session
    finally:
        await engine.dispose()
