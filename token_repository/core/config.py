"""Token repository configuration loaded from environment variables.

Settings for the database connection, the token table, and token
lifecycle parameters. Uses pydantic-settings for validation and .env
file support.
"""

from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_token_settings() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "token_dev_password"  # nosec B105

# Minimum length for TOKEN_HASH_KEY in production (256 bits = 32 bytes)
_MIN_HASH_KEY_LENGTH = 32

# bcrypt cost factor bounds accepted by the bcrypt library
_MIN_BCRYPT_ROUNDS = 4
_MAX_BCRYPT_ROUNDS = 31

DEFAULT_TOKEN_TABLE = "password_reset_tokens"
DEFAULT_EXPIRE_MINUTES = 60


class TokenSettings(BaseSettings):
    """Token repository settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "token_repository"
    database_user: str = "token_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # Token lifecycle
    token_table: str = DEFAULT_TOKEN_TABLE
    token_hash_key: SecretStr = SecretStr("")
    token_expire_minutes: int = DEFAULT_EXPIRE_MINUTES
    token_hasher: Literal["bcrypt", "sha256"] = "bcrypt"
    bcrypt_rounds: int = 12

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def database_url_sync(self) -> str:
        """Sync database URL for Alembic."""
        return (
            f"postgresql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_token_settings(self) -> "TokenSettings":
        """Validate token lifecycle and production security requirements.

        Checks:
        - Token expiry must be positive (all environments)
        - bcrypt rounds must be within the library's accepted range
        - Token table name must not be blank
        - Database password must not be the default in production
        - TOKEN_HASH_KEY must be set and >= 32 chars in production
        """
        if self.token_expire_minutes <= 0:
            msg = (
                "TOKEN_EXPIRE_MINUTES must be positive. "
                f"Got: {self.token_expire_minutes}"
            )
            raise ValueError(msg)

        if not _MIN_BCRYPT_ROUNDS <= self.bcrypt_rounds <= _MAX_BCRYPT_ROUNDS:
            msg = (
                f"BCRYPT_ROUNDS must be between {_MIN_BCRYPT_ROUNDS} and "
                f"{_MAX_BCRYPT_ROUNDS}. Got: {self.bcrypt_rounds}"
            )
            raise ValueError(msg)

        if not self.token_table.strip():
            msg = "TOKEN_TABLE must not be blank."
            raise ValueError(msg)

        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            hash_key = self.token_hash_key.get_secret_value()
            if not hash_key:
                msg = (
                    "TOKEN_HASH_KEY must be set in production. "
                    'Generate with: python -c "import secrets; '
                    'print(secrets.token_hex(32))"'
                )
                raise ValueError(msg)
            if len(hash_key) < _MIN_HASH_KEY_LENGTH:
                msg = (
                    f"TOKEN_HASH_KEY must be at least {_MIN_HASH_KEY_LENGTH} "
                    "characters for adequate security."
                )
                raise ValueError(msg)

        return self


settings = TokenSettings()
