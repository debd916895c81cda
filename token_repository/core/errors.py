"""Token repository error classes.

All errors carry a machine-readable code and a human-readable message so
callers can map them onto their own error responses.

Absence of a token record is never an error: lookups return None or
False, and deletes are no-ops.
"""


class TokenRepositoryError(Exception):
    """Base class for token repository errors.

    Attributes:
        code: Machine-readable error code (e.g., "CONFIGURATION_ERROR").
        message: Human-readable error message.
    """

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class ConfigurationError(TokenRepositoryError):
    """Token store was constructed with invalid settings.

    Raised at construction time (missing hash key, non-positive expiry,
    blank table name) so misconfiguration never surfaces mid-request.
    """

    def __init__(self, message: str) -> None:
        super().__init__(code="CONFIGURATION_ERROR", message=message)


class PayloadError(TokenRepositoryError):
    """Payload filter returned a row the store cannot persist."""

    def __init__(self, message: str) -> None:
        super().__init__(code="PAYLOAD_ERROR", message=message)


class RecordStoreError(TokenRepositoryError):
    """Raised when the record store fails at the database level.

    The original exception is chained via ``raise ... from exc``. The
    token store never retries; retry policy belongs to the caller.
    """

    def __init__(self, message: str) -> None:
        super().__init__(code="RECORD_STORE_ERROR", message=message)
