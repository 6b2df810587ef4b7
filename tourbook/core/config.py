"""
Application configuration.

Values come from the environment or a local .env file.
The settings object is passed explicitly to ``create_app``; request
handlers read it back from ``app.state`` instead of the environment.
"""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        environment: ``development`` returns full error diagnostics,
            ``production`` only leaks operational error messages.
        debug: Enable interactive docs. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        database_url: Explicit SQLAlchemy URL. Overrides the postgres_* values.
        jwt_secret: HMAC secret used to sign session tokens.
        jwt_expires_in_days: Lifetime of an issued token.
        jwt_cookie_expires_in_days: Lifetime of the ``jwt`` session cookie.
        bcrypt_rounds: Work factor for password hashing.
        rate_limit_default: Per-IP ceiling applied to API routes.
        max_request_size_bytes: Maximum allowed request body size.
        max_page_limit: Upper bound for the ``limit`` query parameter.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    project_name: str = "Tourbook"
    version: str = "0.1.0"
    environment: Literal["development", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Persistence
    database_url: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "tourbook"
    create_schema: bool = True

    # Authentication
    jwt_secret: str = "change-me-to-a-long-random-secret"
    jwt_algorithm: str = "HS256"
    jwt_expires_in_days: int = 90
    jwt_cookie_expires_in_days: int = 90
    bcrypt_rounds: int = 12
    password_reset_expires_minutes: int = 10

    # HTTP
    rate_limit_default: str = "1000/hour"
    rate_limit_enabled: bool = True
    max_request_size_bytes: int = 12_288  # 12 kB
    max_page_limit: int = 1000
    cors_origins: list[str] = ["*"]

    # Mail
    email_from: str = "Tourbook <hello@tourbook.io>"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_database_url(self) -> str:
        """Return the effective SQLAlchemy URL.

        Priority:
        1. Explicit `DATABASE_URL`
        2. Build a psycopg DSN from postgres_* values (useful for Docker Compose or local setups)
        """
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg://{self.postgres_user}:{self.postgres_password}@"
            f"{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
