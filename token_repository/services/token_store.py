"""Token store: issue, verify and purge single-use credential tokens.

Tokens (e.g. password reset links) are short-lived and single-use. Only a
one-way hash of each token is persisted; the plaintext is returned to the
caller exactly once, from create().

Rules enforced here:
- At most one live token per user: create() replaces any earlier token.
- A token is valid while now < created_at + expiry. Validity is derived
  on every lookup, never stored.
- A wrong token and a missing token look the same to the caller (None).

Tokens are HMAC-SHA256(hash_key, 40 random characters), hex encoded. The
hash key binds tokens to this store on top of the randomness.
"""

import hashlib
import hmac
import secrets
import string
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import structlog

from token_repository.core.config import DEFAULT_EXPIRE_MINUTES
from token_repository.core.errors import ConfigurationError, PayloadError
from token_repository.core.hashing import SecretHasher
from token_repository.models.token_record import CORE_COLUMNS, TokenRecord
from token_repository.repositories.record_store import RecordStore

logger = structlog.get_logger()

# Length of the random string fed into the HMAC
RANDOM_LENGTH = 40

_RANDOM_ALPHABET = string.ascii_letters + string.digits


class HasIdentifier(Protocol):
    """Anything with a stable identifier (user model, account, ...)."""

    @property
    def id(self) -> object: ...


PayloadFilter = Callable[[dict[str, Any], Any], Mapping[str, Any]]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenRepository(Protocol):
    """Public contract of a token store."""

    async def create(self, user: HasIdentifier) -> str: ...

    async def find(self, user: HasIdentifier, token: str) -> TokenRecord | None: ...

    async def exists(self, user: HasIdentifier, token: str) -> bool: ...

    async def delete(self, user: HasIdentifier) -> None: ...

    async def delete_expired(self) -> int: ...


class TokenStore:
    """Token lifecycle on top of a record store and a secret hasher.

    Configuration is fixed at construction. The expiry is given in minutes
    and converted to seconds once, here.

    Args:
        record_store: Persistence for token rows.
        hasher: One-way hasher used for stored token values.
        hash_key: Secret key material mixed into every generated token.
        expire_minutes: Token lifetime in minutes.
        payload_filter: Optional ``(payload, user) -> payload`` hook applied
            to every row before it is stored. Use it to add extension
            columns (IP address, purpose tag, ...).
        clock: Returns the current aware datetime. Defaults to UTC now.

    Raises:
        ConfigurationError: If hash_key is empty or expire_minutes is not
            positive.
    """

    def __init__(
        self,
        record_store: RecordStore,
        hasher: SecretHasher,
        *,
        hash_key: str,
        expire_minutes: int = DEFAULT_EXPIRE_MINUTES,
        payload_filter: PayloadFilter | None = None,
        clock: Clock | None = None,
    ) -> None:
        if not hash_key:
            raise ConfigurationError("Token hash key must not be empty")
        if isinstance(expire_minutes, bool) or expire_minutes <= 0:
            raise ConfigurationError(
                f"Token expiry must be a positive number of minutes, got {expire_minutes!r}"
            )

        self._record_store = record_store
        self._hasher = hasher
        self._hash_key = hash_key.encode()
        self._expires_seconds = int(expire_minutes * 60)
        self._lifetime = timedelta(seconds=self._expires_seconds)
        self._payload_filter = payload_filter
        self._clock = clock or _utcnow

    @property
    def record_store(self) -> RecordStore:
        return self._record_store

    @property
    def hasher(self) -> SecretHasher:
        return self._hasher

    @property
    def expires_seconds(self) -> int:
        """Token lifetime in seconds."""
        return self._expires_seconds

    async def create(self, user: HasIdentifier) -> str:
        """Issue a new token for a user, replacing any existing one.

        Args:
            user: Token owner.

        Returns:
            The plaintext token. It is not stored and cannot be recovered.

        Raises:
            PayloadError: If the payload filter drops a required column or
                changes user_id.
            RecordStoreError: If the record store fails.
        """
        token = self.create_new_token()
        payload = self._build_payload(user, token)

        await self._record_store.replace(payload)

        logger.info("token_created", user_id=payload["user_id"])
        return token

    async def find(self, user: HasIdentifier, token: str) -> TokenRecord | None:
        """Get the user's token record if ``token`` matches and has not expired.

        Args:
            user: Token owner.
            token: Plaintext token presented by the caller.

        Returns:
            The stored record, or None if missing, expired, or not matching.
        """
        row = await self._record_store.find_one_by(self._user_id(user))
        if row is None:
            return None

        record = TokenRecord.from_row(row)
        expired = self._clock() >= record.created_at + self._lifetime
        # Verify even when expired: no early return on the expiry check
        verified = self._hasher.verify(token, record.token_hash)

        return record if verified and not expired else None

    async def exists(self, user: HasIdentifier, token: str) -> bool:
        """Check whether ``token`` is the user's current, unexpired token."""
        return await self.find(user, token) is not None

    async def delete(self, user: HasIdentifier) -> None:
        """Delete the user's token. No-op if the user has none."""
        user_id = self._user_id(user)
        deleted = await self._record_store.delete_by(user_id)
        if deleted:
            logger.info("token_deleted", user_id=user_id)

    async def delete_expired(self) -> int:
        """Delete every token created before ``now - expiry``.

        Meant to be run periodically by an external scheduler. Safe to run
        concurrently and repeatedly.

        Returns:
            Number of deleted tokens.
        """
        cutoff = self._clock() - self._lifetime
        deleted = await self._record_store.delete_created_before(cutoff)
        logger.info("expired_tokens_purged", count=deleted, cutoff=cutoff.isoformat())
        return deleted

    def create_new_token(self) -> str:
        """Generate a new plaintext token.

        Returns:
            64 lowercase hex characters.
        """
        random = "".join(
            secrets.choice(_RANDOM_ALPHABET) for _ in range(RANDOM_LENGTH)
        )
        return hmac.new(self._hash_key, random.encode(), hashlib.sha256).hexdigest()

    def _build_payload(self, user: HasIdentifier, token: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "user_id": self._user_id(user),
            "token": self._hasher.hash(token),
            "created_at": self._clock(),
        }
        if self._payload_filter is None:
            return payload

        filtered = self._payload_filter(payload, user)
        if not isinstance(filtered, Mapping):
            raise PayloadError(
                f"Payload filter must return a mapping, got {type(filtered).__name__}"
            )
        missing = CORE_COLUMNS - filtered.keys()
        if missing:
            raise PayloadError(
                f"Payload filter removed required fields: {', '.join(sorted(missing))}"
            )
        if filtered["user_id"] != self._user_id(user):
            # find() and the replace are keyed on the caller's user; a moved row
            # would leave the previous token live
            raise PayloadError("Payload filter must not change user_id")
        return dict(filtered)

    @staticmethod
    def _user_id(user: HasIdentifier) -> str:
        return str(user.id)
