"""Tests for token store factory functions.

Covers:
- get_hasher: hasher selection from settings, per-config cache, reset
- build_token_store: settings wiring, table selection, fail-fast config
"""

from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest
from pydantic import SecretStr
from sqlalchemy import Column, String
from sqlalchemy.ext.asyncio import AsyncSession

from tests.conftest import TEST_HASH_KEY
from token_repository.core.config import TokenSettings
from token_repository.core.errors import ConfigurationError
from token_repository.core.hashing import BcryptHasher, Sha256Hasher
from token_repository.repositories.token_record_repository import (
    TokenRecordRepository,
)
from token_repository.services import factory
from token_repository.services.factory import (
    build_token_store,
    get_hasher,
    reset_hasher,
)


def _settings(**overrides: object) -> TokenSettings:
    values: dict[str, object] = {
        "token_hash_key": SecretStr(TEST_HASH_KEY),
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return TokenSettings(**values)  # type: ignore[arg-type]


@pytest.fixture(autouse=True)
def _reset_hasher_cache() -> Iterator[None]:
    """Each test starts without a cached hasher."""
    reset_hasher()
    yield
    reset_hasher()


class TestGetHasher:
    """Hasher cache keyed by settings."""

    def test_bcrypt_from_settings(self):
        hasher = get_hasher(_settings())
        assert isinstance(hasher, BcryptHasher)
        assert hasher.rounds == 4

    def test_sha256_from_settings(self):
        assert isinstance(get_hasher(_settings(token_hasher="sha256")), Sha256Hasher)

    def test_reuses_instance_for_same_config(self):
        """Same hasher kind and rounds share one instance."""
        first = get_hasher(_settings())
        assert get_hasher(_settings()) is first

    def test_respects_different_config(self):
        """A later call with other settings gets a matching hasher."""
        bcrypt_hasher = get_hasher(_settings())
        sha_hasher = get_hasher(_settings(token_hasher="sha256"))
        costlier = get_hasher(_settings(bcrypt_rounds=5))

        assert isinstance(sha_hasher, Sha256Hasher)
        assert isinstance(costlier, BcryptHasher)
        assert costlier.rounds == 5
        assert costlier is not bcrypt_hasher

    def test_store_uses_hasher_from_its_config(self):
        """build_token_store honours the config it is given."""
        db = MagicMock(spec=AsyncSession)
        build_token_store(db, config=_settings())

        store = build_token_store(db, config=_settings(token_hasher="sha256"))

        assert isinstance(store.hasher, Sha256Hasher)

    def test_reset_clears_cache(self):
        get_hasher(_settings())
        reset_hasher()
        assert factory._hashers == {}


class TestBuildTokenStore:
    """Token store wiring."""

    def test_wires_settings(self):
        db = MagicMock(spec=AsyncSession)
        store = build_token_store(db, config=_settings(token_expire_minutes=15))

        assert store.expires_seconds == 900
        assert isinstance(store.record_store, TokenRecordRepository)
        assert store.record_store.table.name == "password_reset_tokens"
        assert isinstance(store.hasher, BcryptHasher)

    def test_uses_configured_table_and_extra_columns(self):
        db = MagicMock(spec=AsyncSession)
        store = build_token_store(
            db,
            Column("purpose", String(20)),
            config=_settings(token_table="factory_purpose_tokens"),
        )

        table = store.record_store.table
        assert table.name == "factory_purpose_tokens"
        assert "purpose" in table.c

    def test_extra_columns_survive_earlier_plain_build(self):
        """A store built without extras first does not strip later extensions."""
        db = MagicMock(spec=AsyncSession)
        config = _settings(token_table="factory_late_ip_tokens")
        build_token_store(db, config=config)

        store = build_token_store(db, Column("ip_address", String(64)), config=config)

        assert "ip_address" in store.record_store.table.c

    def test_missing_hash_key_fails_fast(self):
        db = MagicMock(spec=AsyncSession)
        with pytest.raises(ConfigurationError):
            build_token_store(db, config=_settings(token_hash_key=SecretStr("")))
