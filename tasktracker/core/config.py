"""Configuration management for tasktracker."""

from pathlib import Path

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

    # Token signing
    secret_key: str | None = Field(default=None, description="Server-held secret used to sign bearer tokens")
    token_ttl_hours: int = Field(default=24, description="Lifetime of an issued bearer token (in hours)")

    # Password hashing
    bcrypt_rounds: int = Field(default=12, description="bcrypt cost factor for password hashes")

    # SQLite Configuration
    sqlite_db_path: str = Field(default="data/tasktracker.db", description="Path to the SQLite database file")

    # Frontend
    client_url: str = Field(default="http://localhost:3000", description="Frontend base URL for OAuth redirects")

    # Google OAuth Configuration (optional)
    google_client_id: str | None = Field(default=None, description="Google OAuth client ID")
    google_client_secret: str | None = Field(default=None, description="Google OAuth client secret")
    google_callback_url: str = Field(
        default="http://localhost:8080/auth/google/callback",
        description="Redirect URI registered with Google",
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Runtime
    environment: str = Field(default="development", description="Deployment environment name")
    port: int = Field(default=8080, description="Port used when running the server directly")

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production mode."""
        return self.environment.lower() == "production"

    @property
    def google_oauth_enabled(self) -> bool:
        """Whether both Google OAuth client credentials are configured."""
        return bool(self.google_client_id and self.google_client_secret)

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

    API_VERSION: str = "1.0.0"

    # API Configuration
    API_TIMEOUT_SECONDS: int = 10

    # Google OAuth endpoints
    GOOGLE_AUTH_URL: str = "https://accounts.google.com/o/oauth2/v2/auth"
    GOOGLE_TOKEN_URL: str = "https://oauth2.googleapis.com/token"  # noqa: S105
    GOOGLE_USERINFO_URL: str = "https://www.googleapis.com/oauth2/v3/userinfo"
    GOOGLE_SCOPES: str = "openid email profile"
    OAUTH_STATE_MAX_AGE_SECONDS: int = 600  # 10 minutes to complete the Google round trip

    # Credential validation
    EMAIL_PATTERN: str = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
    USERNAME_PATTERN: str = r"^[a-zA-Z0-9_]{3,20}$"
    PASSWORD_MIN_LENGTH: int = 6
    PASSWORD_MAX_BYTES: int = 72  # bcrypt only uses the first 72 bytes

    # CORS
    DEV_ORIGINS: tuple[str, ...] = ("http://localhost:3000", "http://localhost:3001")

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
