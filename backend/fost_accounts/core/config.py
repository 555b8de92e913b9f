"""Application configuration loaded from environment variables.

Settings for the database connection, logging, and the account rules
(login name and password bounds, password hashing cost, token size).
Uses pydantic-settings for validation and .env file support.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "fost_dev_password"  # nosec B105

# bcrypt.kdf rounds below this are only acceptable outside production
_MIN_PRODUCTION_KDF_ROUNDS = 50

# Rounds are stored as two hex digits in front of each password hash
_MAX_KDF_ROUNDS = 0xFF


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_driver: str = "postgresql+asyncpg"
    database_sync_driver: str = "postgresql+psycopg2"
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "fost"
    database_user: str = "fost_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Account rules
    # Defaults follow the in-game register form (password 5-100 chars) and
    # the width of user_authentication.login_user (32 chars).
    login_name_min_length: int = 3
    login_name_max_length: int = 32
    password_min_length: int = 5
    password_max_length: int = 100

    # Password hashing (bcrypt.kdf) and remember-me tokens
    password_kdf_rounds: int = 64
    token_bytes: int = 32

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"{self.database_driver}://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def database_url_sync(self) -> str:
        """Sync database URL for Alembic."""
        return (
            f"{self.database_sync_driver}://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate account rules and production security requirements.

        Checks:
        - Login name bounds fit the login_user column (all environments)
        - Min/max bounds are ordered and positive (all environments)
        - Database password must not be the default in production
        - KDF rounds must not be lowered in production
        """
        if not 0 < self.login_name_min_length <= self.login_name_max_length <= 32:
            msg = (
                "LOGIN_NAME_MIN_LENGTH / LOGIN_NAME_MAX_LENGTH must satisfy "
                f"0 < min <= max <= 32. Got: {self.login_name_min_length}, "
                f"{self.login_name_max_length}"
            )
            raise ValueError(msg)

        if not 0 < self.password_min_length <= self.password_max_length:
            msg = (
                "PASSWORD_MIN_LENGTH / PASSWORD_MAX_LENGTH must satisfy "
                f"0 < min <= max. Got: {self.password_min_length}, "
                f"{self.password_max_length}"
            )
            raise ValueError(msg)

        if not 0 < self.password_kdf_rounds <= _MAX_KDF_ROUNDS:
            msg = (
                f"PASSWORD_KDF_ROUNDS must satisfy 0 < rounds <= {_MAX_KDF_ROUNDS}. "
                f"Got: {self.password_kdf_rounds}"
            )
            raise ValueError(msg)

        # 16 bytes is the floor for an unguessable bearer token
        if self.token_bytes < 16:
            msg = f"TOKEN_BYTES must be at least 16. Got: {self.token_bytes}"
            raise ValueError(msg)

        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            if self.password_kdf_rounds < _MIN_PRODUCTION_KDF_ROUNDS:
                msg = (
                    f"PASSWORD_KDF_ROUNDS must be at least {_MIN_PRODUCTION_KDF_ROUNDS} "
                    "in production."
                )
                raise ValueError(msg)

        return self


settings = Settings()
