"""Token record table and row type.

One row per user with an outstanding token. Rows are never updated: a new
token for the same user replaces the previous row.

The table name is configurable, so the table is built with a factory
rather than a fixed ORM class. Integrators who store extra fields (IP
address, purpose tag, ...) pass the extra columns to the factory and fill
them from a payload filter.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Column, DateTime, Index, MetaData, String, Table

from token_repository.core.config import DEFAULT_TOKEN_TABLE
from token_repository.models.base import Base

# Columns every token table carries; anything else is an extension field
CORE_COLUMNS: frozenset[str] = frozenset({"user_id", "token", "created_at"})


def as_utc(value: datetime) -> datetime:
    """Treat a naive timestamp (e.g. from drivers that drop the zone) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def token_table(
    name: str = DEFAULT_TOKEN_TABLE,
    *extra_columns: Column[Any],
    metadata: MetaData | None = None,
) -> Table:
    """Build the token table, or extend the already registered one.

    Extra columns missing from a registered table are appended to it, so the
    first caller in a process does not decide the table shape for later ones.

    Args:
        name: Table name.
        *extra_columns: Additional columns populated by a payload filter.
        metadata: MetaData to register the table on. Defaults to
            ``Base.metadata``.

    Returns:
        The Table for ``name``.
    """
    metadata = metadata if metadata is not None else Base.metadata
    if name in metadata.tables:
        table = metadata.tables[name]
        for column in extra_columns:
            if column.name not in table.c:
                table.append_column(column)
        return table

    return Table(
        name,
        metadata,
        # Unique user_id index backs the one-token-per-user rule and is the
        # conflict target for the PostgreSQL upsert
        Column("user_id", String(255), nullable=False),
        Column("token", String(255), nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
        *extra_columns,
        Index(f"uq_{name}_user_id", "user_id", unique=True),
        Index(f"idx_{name}_created_at", "created_at"),
    )


@dataclass(frozen=True)
class TokenRecord:
    """A stored token row.

    Attributes:
        user_id: Stringified identifier of the token owner.
        token_hash: One-way hash of the plaintext token.
        created_at: Issuance timestamp (timezone-aware, UTC).
        extra: Extension fields added by a payload filter.
    """

    user_id: str
    token_hash: str
    created_at: datetime
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TokenRecord":
        """Build a record from a field-name keyed row."""
        return cls(
            user_id=row["user_id"],
            token_hash=row["token"],
            created_at=as_utc(row["created_at"]),
            extra={k: v for k, v in row.items() if k not in CORE_COLUMNS},
        )
