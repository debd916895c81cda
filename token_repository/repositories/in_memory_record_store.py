"""In-memory record store for token rows.

Implements the RecordStore protocol with a dict keyed by user_id. Keying
by user_id gives the one-row-per-user rule for free: replace() is a single
assignment.

Note: safe for async/await usage (single-threaded event loop) but not for
multi-threaded access, and rows do not survive a restart. Use
TokenRecordRepository for anything shared between processes.
"""

from datetime import datetime
from typing import Any

from token_repository.models.token_record import as_utc
from token_repository.repositories.record_store import Row


class InMemoryRecordStore:
    """Dict-backed token row store."""

    def __init__(self) -> None:
        self._rows: dict[str, dict[str, Any]] = {}

    async def insert(self, row: Row) -> None:
        """Insert a row.

        Raises:
            ValueError: If the user already has a row (mirrors the unique
                index on the relational table).
        """
        user_id = row["user_id"]
        if user_id in self._rows:
            msg = f"Token row for user '{user_id}' already exists"
            raise ValueError(msg)
        self._rows[user_id] = dict(row)

    async def replace(self, row: Row) -> None:
        self._rows[row["user_id"]] = dict(row)

    async def find_one_by(self, user_id: str) -> dict[str, Any] | None:
        row = self._rows.get(user_id)
        # Copy so callers cannot mutate stored rows
        return dict(row) if row is not None else None

    async def delete_by(self, user_id: str) -> int:
        return 1 if self._rows.pop(user_id, None) is not None else 0

    async def delete_created_before(self, cutoff: datetime) -> int:
        expired = [
            user_id
            for user_id, row in self._rows.items()
            if as_utc(row["created_at"]) < as_utc(cutoff)
        ]
        for user_id in expired:
            del self._rows[user_id]
        return len(expired)

    def __len__(self) -> int:
        return len(self._rows)

    def clear(self) -> None:
        """Remove all rows."""
        self._rows.clear()
