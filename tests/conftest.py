import socket
import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy import Column, String, event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from token_repository.core.config import settings
from token_repository.core.hashing import BcryptHasher
from token_repository.models.base import Base
from token_repository.models.token_record import token_table
from token_repository.repositories.in_memory_record_store import InMemoryRecordStore
from token_repository.services.token_store import TokenStore

# Use separate test database
TEST_DATABASE_URL = settings.database_url.replace(
    settings.database_name, f"{settings.database_name}_test"
)

# Security: This is a test-only key. Production uses a real key from env.
TEST_HASH_KEY = "test-hash-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow

TEST_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
USER_B_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")

# Fixed starting point for the controllable clock
FROZEN_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)

# Minimum bcrypt cost keeps the suite fast
TEST_BCRYPT_ROUNDS = 4

# Tables registered before create_all so the database fixtures build them
DEFAULT_TABLE = token_table()
TAGGED_TABLE = token_table(
    "tagged_reset_tokens",
    Column("ip_address", String(64), nullable=True),
    Column("purpose", String(20), nullable=True),
)


@dataclass(frozen=True)
class FakeUser:
    """Minimal object exposing a stable identifier."""

    id: uuid.UUID


class FrozenClock:
    """Clock returning a fixed time until advanced."""

    def __init__(self, now: datetime = FROZEN_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def _is_postgres_available() -> bool:
    """Check if PostgreSQL is accepting connections.

    Returns:
        True if PostgreSQL is reachable on the configured port, False otherwise.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex((settings.database_host, settings.database_port))
        sock.close()
        return result == 0
    except OSError:
        return False


# Check once at module load time
_POSTGRES_AVAILABLE = _is_postgres_available()


def skip_if_no_postgres() -> None:
    """Skip test if PostgreSQL is not available."""
    if not _POSTGRES_AVAILABLE:
        pytest.skip(
            f"PostgreSQL not available on port {settings.database_port}. "
            "Start database with: docker compose up -d"
        )


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine.

    Skips test if PostgreSQL is not available (e.g., Docker not running).
    """
    skip_if_no_postgres()

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def sqlite_engine():
    """In-memory SQLite engine with every registered token table created.

    Always available, so the relational record store runs end to end
    without PostgreSQL. pysqlite's implicit BEGIN is turned off and emitted
    by SQLAlchemy instead, which keeps SAVEPOINT (begin_nested) working.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def sqlite_session(sqlite_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session on the in-memory SQLite engine, rolled back after the test."""
    async_session = async_sessionmaker(
        sqlite_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def clock() -> FrozenClock:
    """Controllable clock starting at FROZEN_NOW."""
    return FrozenClock()


@pytest.fixture
def hasher() -> BcryptHasher:
    """Low-cost bcrypt hasher."""
    return BcryptHasher(rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    """Fresh in-memory record store for each test."""
    return InMemoryRecordStore()


@pytest.fixture
def token_store(
    record_store: InMemoryRecordStore, hasher: BcryptHasher, clock: FrozenClock
) -> TokenStore:
    """Token store with a 60 minute expiry over the in-memory record store."""
    return TokenStore(
        record_store,
        hasher,
        hash_key=TEST_HASH_KEY,
        expire_minutes=60,
        clock=clock,
    )


@pytest.fixture
def user() -> FakeUser:
    return FakeUser(id=TEST_USER_ID)


@pytest.fixture
def user_b() -> FakeUser:
    return FakeUser(id=USER_B_ID)
