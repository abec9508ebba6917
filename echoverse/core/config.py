"""Application configuration"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # API Configuration
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "Echoverse"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Echoverse identity and session service"

    # Sessions
    SESSION_SECRET: str = Field(default="dev-secret-change-in-production")
    SESSION_COOKIE_NAME: str = Field(default="echoverse.sid")
    SESSION_MAX_AGE_DAYS: int = Field(default=30)
    SESSION_PRUNE_INTERVAL_SECONDS: int = Field(default=24 * 60 * 60)
    ALGORITHM: str = "HS256"

    # Tokens
    RESET_TOKEN_EXPIRE_HOURS: int = Field(default=1)
    VERIFICATION_TOKEN_EXPIRE_HOURS: int = Field(default=24)

    # Database (empty means in-memory storage)
    DATABASE_URL: Optional[str] = Field(default=None)

    # OAuth providers are only registered when both id and secret are set
    GOOGLE_CLIENT_ID: Optional[str] = Field(default=None)
    GOOGLE_CLIENT_SECRET: Optional[str] = Field(default=None)
    GITHUB_CLIENT_ID: Optional[str] = Field(default=None)
    GITHUB_CLIENT_SECRET: Optional[str] = Field(default=None)

    # Attach an OAuth identity to an existing user with the same email only
    # when that user's email is already verified
    OAUTH_LINK_REQUIRE_VERIFIED_EMAIL: bool = Field(default=False)

    # Email SMTP Configuration
    SMTP_HOST: str = Field(default="smtp.ethereal.email")
    SMTP_PORT: int = Field(default=587)
    SMTP_USERNAME: Optional[str] = Field(default=None)
    SMTP_PASSWORD: Optional[str] = Field(default=None)
    SMTP_USE_TLS: bool = Field(default=True)
    FROM_EMAIL: str = Field(default="no-reply@echoverse.com")
    FROM_NAME: str = Field(default="Echoverse")

    # CORS
    ALLOWED_HOSTS: list[str] = Field(default=["http://localhost:5173"])

    # Application URLs
    FRONTEND_URL: str = Field(default="http://localhost:5173")
    BACKEND_URL: str = Field(default="http://localhost:8000")

    # Development
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    ENVIRONMENT: str = Field(default="development")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def session_cookie_secure(self) -> bool:
        return self.ENVIRONMENT != "development"

    @property
    def google_enabled(self) -> bool:
        return bool(self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET)

    @property
    def github_enabled(self) -> bool:
        return bool(self.GITHUB_CLIENT_ID and self.GITHUB_CLIENT_SECRET)


@lru_cache
def get_settings() -> Settings:
    """Settings loaded once per process from the environment"""
    return Settings()
