"""One-way hashing for stored token values.

Two hashers share the SecretHasher protocol:
- BcryptHasher: salted, cost-tuned bcrypt digests (default).
- Sha256Hasher: unsalted SHA-256 hex digests. Suitable because tokens are
  high-entropy random values, and cheap enough for hot lookup paths.

Both verify in constant time and return False (never raise) for a
malformed or foreign digest.
"""

import hashlib
import hmac
from typing import Protocol

import bcrypt

# bcrypt cost factor for token hashing
DEFAULT_BCRYPT_ROUNDS = 12


class SecretHasher(Protocol):
    """One-way hash with constant-time verification."""

    def hash(self, plaintext: str) -> str:
        """Hash a plaintext value for storage."""
        ...

    def verify(self, plaintext: str, digest: str) -> bool:
        """Check a plaintext value against a stored digest."""
        ...


class BcryptHasher:
    """bcrypt-backed hasher.

    Args:
        rounds: bcrypt cost factor. Tests use the minimum (4) for speed.
    """

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, plaintext: str) -> str:
        return bcrypt.hashpw(
            plaintext.encode(), bcrypt.gensalt(rounds=self._rounds)
        ).decode()

    def verify(self, plaintext: str, digest: str) -> bool:
        # bcrypt.checkpw raises ValueError on a digest that is not a
        # bcrypt hash (invalid salt)
        try:
            return bcrypt.checkpw(plaintext.encode(), digest.encode())
        except ValueError:
            return False


class Sha256Hasher:
    """SHA-256 hex digest hasher."""

    def hash(self, plaintext: str) -> str:
        return hashlib.sha256(plaintext.encode()).hexdigest()

    def verify(self, plaintext: str, digest: str) -> bool:
        return hmac.compare_digest(self.hash(plaintext).encode(), digest.encode())
