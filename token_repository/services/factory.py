"""Factory functions wiring a TokenStore from settings.

Hashers are stateless and cached, one per (hasher kind, bcrypt rounds)
pair. The token store itself is built per session, because its record
store is bound to one AsyncSession (one transaction).
"""

from typing import Any

from sqlalchemy import Column
from sqlalchemy.ext.asyncio import AsyncSession

from token_repository.core.config import TokenSettings, settings
from token_repository.core.hashing import BcryptHasher, SecretHasher, Sha256Hasher
from token_repository.models.token_record import token_table
from token_repository.repositories.token_record_repository import (
    TokenRecordRepository,
)
from token_repository.services.token_store import Clock, PayloadFilter, TokenStore

_hashers: dict[tuple[str, int], SecretHasher] = {}


def get_hasher(config: TokenSettings | None = None) -> SecretHasher:
    """Get or create the secret hasher for the given settings.

    Args:
        config: Optional settings. Defaults to the module-level settings.
            Calls with the same hasher kind and bcrypt rounds share one
            instance.

    Returns:
        SecretHasher instance.

    Raises:
        ValueError: If the configured hasher is unknown.
    """
    config = config or settings
    key = (config.token_hasher, config.bcrypt_rounds)

    if key not in _hashers:
        if config.token_hasher == "bcrypt":
            _hashers[key] = BcryptHasher(rounds=config.bcrypt_rounds)
        elif config.token_hasher == "sha256":
            _hashers[key] = Sha256Hasher()
        else:
            raise ValueError(f"Unknown token hasher: {config.token_hasher}")

    return _hashers[key]


def reset_hasher() -> None:
    """Drop all cached hashers (for testing)."""
    _hashers.clear()


def build_token_store(
    db: AsyncSession,
    *extra_columns: Column[Any],
    config: TokenSettings | None = None,
    payload_filter: PayloadFilter | None = None,
    clock: Clock | None = None,
) -> TokenStore:
    """Build a TokenStore bound to a database session.

    Args:
        db: Async database session. The caller commits.
        *extra_columns: Extension columns on the token table.
        config: Settings. Defaults to the module-level settings.
        payload_filter: Optional hook filling the extension columns.
        clock: Optional clock override.

    Returns:
        Configured TokenStore.

    Raises:
        ConfigurationError: If the hash key is missing or expiry invalid.
    """
    config = config or settings
    table = token_table(config.token_table, *extra_columns)
    return TokenStore(
        TokenRecordRepository(db, table),
        get_hasher(config),
        hash_key=config.token_hash_key.get_secret_value(),
        expire_minutes=config.token_expire_minutes,
        payload_filter=payload_filter,
        clock=clock,
    )
