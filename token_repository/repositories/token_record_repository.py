"""Repository for token rows in a relational table.

Implements the RecordStore protocol on an AsyncSession. The repository
never commits: the caller owns the transaction (see token_session()).
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import Table, delete, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from token_repository.core.errors import RecordStoreError
from token_repository.models.token_record import token_table
from token_repository.repositories.record_store import Row

logger = logging.getLogger(__name__)


class TokenRecordRepository:
    """Token table operations bound to a session and table.

    Args:
        db: Async database session.
        table: Token table. Defaults to the standard token table.
    """

    def __init__(self, db: AsyncSession, table: Table | None = None) -> None:
        self._db = db
        self._table = table if table is not None else token_table()

    @property
    def table(self) -> Table:
        return self._table

    async def insert(self, row: Row) -> None:
        """Insert a token row.

        Args:
            row: Column values, including any extension columns.

        Raises:
            RecordStoreError: If the database operation fails.
        """
        try:
            await self._db.execute(insert(self._table).values(**row))
        except SQLAlchemyError as exc:
            logger.error("Token insert failed on %s: %s", self._table.name, exc)
            raise RecordStoreError("Token insert failed") from exc

    async def replace(self, row: Row) -> None:
        """Replace the user's row with ``row`` in one atomic step.

        PostgreSQL: single INSERT ... ON CONFLICT (user_id) DO UPDATE.
        Other dialects: delete + insert inside a savepoint.

        Raises:
            RecordStoreError: If the database operation fails.
        """
        try:
            if self._db.get_bind().dialect.name == "postgresql":
                stmt = pg_insert(self._table).values(**row)
                stmt = stmt.on_conflict_do_update(
                    index_elements=[self._table.c.user_id],
                    set_={
                        column.name: stmt.excluded[column.name]
                        for column in self._table.columns
                        if column.name != "user_id"
                    },
                )
                await self._db.execute(stmt)
                return

            async with self._db.begin_nested():
                await self._db.execute(
                    delete(self._table).where(
                        self._table.c.user_id == row["user_id"]
                    )
                )
                await self._db.execute(insert(self._table).values(**row))
        except SQLAlchemyError as exc:
            logger.error("Token replace failed on %s: %s", self._table.name, exc)
            raise RecordStoreError("Token replace failed") from exc

    async def find_one_by(self, user_id: str) -> dict[str, Any] | None:
        """Look up the token row for a user.

        Args:
            user_id: Stringified user identifier.

        Returns:
            Row as a dict if found, None otherwise.

        Raises:
            RecordStoreError: If the database operation fails.
        """
        stmt = select(self._table).where(self._table.c.user_id == user_id).limit(1)
        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Token lookup failed on %s: %s", self._table.name, exc)
            raise RecordStoreError("Token lookup failed") from exc
        row = result.mappings().first()
        return dict(row) if row is not None else None

    async def delete_by(self, user_id: str) -> int:
        """Delete the token row for a user.

        Returns:
            Number of deleted rows (0 when the user had no token).

        Raises:
            RecordStoreError: If the database operation fails.
        """
        stmt = delete(self._table).where(self._table.c.user_id == user_id)
        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Token delete failed on %s: %s", self._table.name, exc)
            raise RecordStoreError("Token delete failed") from exc
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count

    async def delete_created_before(self, cutoff: datetime) -> int:
        """Delete all token rows created strictly before ``cutoff``.

        Range predicate only, so concurrent sweeps are safe.

        Returns:
            Number of deleted rows.

        Raises:
            RecordStoreError: If the database operation fails.
        """
        stmt = delete(self._table).where(self._table.c.created_at < cutoff)
        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Expired token sweep failed on %s: %s", self._table.name, exc)
            raise RecordStoreError("Expired token sweep failed") from exc
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
