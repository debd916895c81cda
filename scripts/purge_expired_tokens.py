"""Purge expired tokens from the configured token table.

Standalone script meant for cron or any other periodic scheduler.

Usage:
    python -m scripts.purge_expired_tokens

Reads TOKEN_* and DATABASE_* settings from the environment or .env.
"""

import logging

from token_repository.core.config import settings
from token_repository.core.database import token_session
from token_repository.services.token_cleanup import purge_expired_tokens

logger = logging.getLogger(__name__)


async def main() -> None:
    """CLI entry point: run the sweep against the configured database."""
    import sys

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Commits when the block exits without error
    async with token_session(settings) as session:
        result = await purge_expired_tokens(session, config=settings)

    logger.info("Final result: %s", result)
    sys.exit(0)


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
