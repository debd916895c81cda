"""Expired token cleanup job.

Application-layer entry point for the periodic expired-token sweep. The
token store never schedules itself; run this from cron (see
scripts/purge_expired_tokens.py) or any other scheduler.

Overlapping runs are safe: the sweep deletes by a created_at range, so a
row deleted twice is simply not found the second time.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from token_repository.core.config import TokenSettings, settings
from token_repository.core.errors import RecordStoreError
from token_repository.services.factory import build_token_store
from token_repository.services.token_store import Clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenCleanupResult:
    """Result of an expired token sweep.

    Attributes:
        table: Token table that was swept.
        deleted_tokens: Number of expired tokens deleted.
    """

    table: str
    deleted_tokens: int


async def purge_expired_tokens(
    db: AsyncSession,
    *,
    config: TokenSettings | None = None,
    clock: Clock | None = None,
) -> TokenCleanupResult:
    """Delete expired tokens from the configured token table.

    Args:
        db: Database session. The caller commits.
        config: Settings. Defaults to the module-level settings.
        clock: Optional clock override.

    Returns:
        TokenCleanupResult with the deletion count.

    Raises:
        RecordStoreError: If the database operation fails.
    """
    config = config or settings
    store = build_token_store(db, config=config, clock=clock)
    try:
        deleted = await store.delete_expired()
    except RecordStoreError:
        logger.error("Expired token cleanup failed for table %s", config.token_table)
        raise

    logger.info(
        "Expired token cleanup complete: %d tokens deleted from %s",
        deleted,
        config.token_table,
    )
    return TokenCleanupResult(table=config.token_table, deleted_tokens=deleted)
