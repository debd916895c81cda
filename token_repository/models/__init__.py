"""Table definitions and row types for the token repository.

Exported for convenient imports:
    from token_repository.models import Base, TokenRecord, token_table
"""

from token_repository.models.base import Base
from token_repository.models.token_record import (
    CORE_COLUMNS,
    TokenRecord,
    as_utc,
    token_table,
)

__all__ = [
    "Base",
    "CORE_COLUMNS",
    "TokenRecord",
    "as_utc",
    "token_table",
]
