"""Application configuration loaded from environment variables.

Settings for database, API, pagination and authentication. Uses
pydantic-settings for validation and .env file support.
"""

import uuid

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "interntrack_dev_password"  # nosec B105

# Minimum length for AUTH_SECRET in production (256 bits = 32 bytes)
_MIN_AUTH_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    # database_url_override wins over the component settings when set
    # (e.g. DATABASE_URL_OVERRIDE=sqlite+aiosqlite:///./interntrack.db).
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "interntrack"
    database_user: str = "interntrack_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD
    database_url_override: str = ""

    # CORS (Security)
    # Default allows localhost:3000 for the React development server
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Pagination for GET /applications
    default_page_size: int = 10
    max_page_size: int = 100

    # Authentication
    # Local-first mode: DEFAULT_USER_ID provides user context without JWT
    # Hosted mode: auth_enabled=True, JWT cookie or bearer token required
    default_user_id: uuid.UUID | None = None
    auth_enabled: bool = False
    auth_secret: SecretStr = SecretStr("")
    auth_issuer: str = "interntrack"
    auth_audience: str = "interntrack"
    auth_cookie_name: str = "interntrack.session-token"

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate production security requirements.

        Checks:
        - Pagination bounds are positive and consistent (all environments)
        - CORS must not use wildcard origin (incompatible with credentials)
        - Database password must not be the default in production
        - AUTH_SECRET must be set and >= 32 chars when auth is enabled in production
        """
        if self.default_page_size < 1 or self.max_page_size < self.default_page_size:
            msg = (
                "DEFAULT_PAGE_SIZE must be >= 1 and <= MAX_PAGE_SIZE. "
                f"Got: {self.default_page_size} / {self.max_page_size}"
            )
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "This application uses credentials (cookies) which are "
                "incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.environment == "production":
            if (
                not self.database_url_override
                and self.database_password == _INSECURE_DEFAULT_PASSWORD
            ):
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            if self.auth_enabled:
                secret_value = self.auth_secret.get_secret_value()
                if not secret_value:
                    msg = (
                        "AUTH_SECRET must be set when AUTH_ENABLED=true in production. "
                        'Generate with: python -c "import secrets; '
                        'print(secrets.token_hex(32))"'
                    )
                    raise ValueError(msg)
                if len(secret_value) < _MIN_AUTH_SECRET_LENGTH:
                    msg = (
                        f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} "
                        "characters for adequate security."
                    )
                    raise ValueError(msg)

        return self


settings = Settings()
