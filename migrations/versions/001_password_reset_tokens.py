"""Create the password_reset_tokens table.

Revision ID: 001_password_reset_tokens
Revises:
Create Date: 2026-10-18

One row per user with an outstanding token. The token column holds a
one-way hash, never the plaintext.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001_password_reset_tokens"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "password_reset_tokens",
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("token", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    # Unique: conflict target for the upsert in TokenRecordRepository.replace()
    op.create_index(
        "uq_password_reset_tokens_user_id",
        "password_reset_tokens",
        ["user_id"],
        unique=True,
    )
    # Range scans from the expired token sweep
    op.create_index(
        "idx_password_reset_tokens_created_at",
        "password_reset_tokens",
        ["created_at"],
    )


def downgrade() -> None:
    op.drop_index(
        "idx_password_reset_tokens_created_at", table_name="password_reset_tokens"
    )
    op.drop_index(
        "uq_password_reset_tokens_user_id", table_name="password_reset_tokens"
    )
    op.drop_table("password_reset_tokens")
