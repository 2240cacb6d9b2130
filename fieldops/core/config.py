"""Configuration management for fieldops."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQLite Configuration
    sqlite_db_path: str = Field(default="./data/fieldops.db", description="Path to the SQLite database file")

    # Token Signing Configuration
    jwt_secret: str = Field(default="default-jwt-secret", description="Secret used to sign access tokens")
    jwt_refresh_secret: str = Field(
        default="default-refresh-secret", description="Secret used to sign refresh tokens"
    )
    access_token_ttl_seconds: int = Field(default=900, description="Access token lifetime (15 minutes)")
    refresh_token_ttl_seconds: int = Field(default=604800, description="Refresh token lifetime (7 days)")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Seed Configuration
    seed_admin_email: str = Field(default="admin@hvac.local", description="E-mail of the seeded admin user")
    seed_admin_password: str | None = Field(default=None, description="Password of the seeded admin user")

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production."""
        return self.environment.lower() == "production"

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_BAD_REQUEST: int = 400
    HTTP_UNAUTHORIZED: int = 401
    HTTP_FORBIDDEN: int = 403
    HTTP_NOT_FOUND: int = 404
    HTTP_CONFLICT: int = 409
    HTTP_SERVER_ERROR: int = 500

    # Password Hashing
    BCRYPT_ROUNDS: int = 10

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 1000  # Task and user lists are not paginated by the API

    # Token salts (itsdangerous namespaces)
    ACCESS_TOKEN_SALT: str = "fieldops-access"
    REFRESH_TOKEN_SALT: str = "fieldops-refresh"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
