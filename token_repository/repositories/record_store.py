"""Record store contract for token rows.

The token store talks to persistence only through this protocol. Rows are
field-name keyed mappings holding at least ``user_id``, ``token`` and
``created_at``; extension fields pass through untouched.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Protocol

Row = Mapping[str, Any]


class RecordStore(Protocol):
    """Persistence for token rows keyed by user identifier."""

    async def insert(self, row: Row) -> None:
        """Insert a new row."""
        ...

    async def replace(self, row: Row) -> None:
        """Atomically remove any row for ``row["user_id"]`` and insert ``row``."""
        ...

    async def find_one_by(self, user_id: str) -> dict[str, Any] | None:
        """Return the row for a user, or None."""
        ...

    async def delete_by(self, user_id: str) -> int:
        """Delete the rows for a user. Returns the number deleted."""
        ...

    async def delete_created_before(self, cutoff: datetime) -> int:
        """Delete rows with ``created_at < cutoff``. Returns the number deleted."""
        ...
