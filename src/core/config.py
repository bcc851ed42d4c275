"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/"
    "securetoken@system.gserviceaccount.com"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Profile Sync API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Firestore
    firestore_project_id: str = Field(
        default="",
        description=(
            "Firebase/Google Cloud project: hosts Firestore and is the required ID "
            "token audience (empty = ambient project; provider tokens are rejected)"
        ),
    )
    firestore_database: str = Field(default="(default)")
    profiles_collection: str = Field(
        default="users",
        description="Collection holding one profile document per user id",
    )

    # Authentication
    auth_jwks_url: str = Field(
        default=FIREBASE_JWKS_URL,
        description="JWKS endpoint for RS256/ES256 ID token verification",
    )
    auth_issuer: str = Field(
        default="",
        description="Expected token issuer; derived from the project id when empty",
    )
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Secret key for HS256 tokens (local development and tests)",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_minutes: int = Field(default=30)

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )
    rate_limit_read: str = Field(default="30/minute")
    rate_limit_write: str = Field(default="10/minute")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def token_issuer(self) -> str:
        """Issuer claim Firebase puts in ID tokens for this project."""
        if self.auth_issuer:
            return self.auth_issuer
        if self.firestore_project_id:
            return f"https://securetoken.google.com/{self.firestore_project_id}"
        return ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
