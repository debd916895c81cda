"""Single-use credential tokens (password reset and similar) on a relational store."""

from token_repository.core.errors import (
    ConfigurationError,
    PayloadError,
    RecordStoreError,
    TokenRepositoryError,
)
from token_repository.core.hashing import BcryptHasher, SecretHasher, Sha256Hasher
from token_repository.models.token_record import TokenRecord, token_table
from token_repository.repositories.in_memory_record_store import InMemoryRecordStore
from token_repository.repositories.record_store import RecordStore
from token_repository.repositories.token_record_repository import (
    TokenRecordRepository,
)
from token_repository.services.token_store import (
    HasIdentifier,
    TokenRepository,
    TokenStore,
)

__all__ = [
    "BcryptHasher",
    "ConfigurationError",
    "HasIdentifier",
    "InMemoryRecordStore",
    "PayloadError",
    "RecordStore",
    "RecordStoreError",
    "SecretHasher",
    "Sha256Hasher",
    "TokenRecord",
    "TokenRecordRepository",
    "TokenRepository",
    "TokenRepositoryError",
    "TokenStore",
    "token_table",
]
