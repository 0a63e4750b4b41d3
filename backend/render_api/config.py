"""
Application configuration using Pydantic Settings.

All environment variables are accessed through this config object.
Never use os.getenv() directly in business logic.
"""

from typing import Annotated, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Server Configuration
    HOST: str = Field(
        default="0.0.0.0",
        description="Interface the HTTP server binds to",
    )
    PORT: int = Field(
        default=3001,
        description="HTTP server port",
    )
    ENVIRONMENT: Literal["development", "production", "test"] = Field(
        default="development",
        description="Deployment environment; production redacts internal error messages",
    )
    LOG_LEVEL: Optional[str] = Field(
        default=None,
        description="Override log level (defaults to DEBUG, or INFO in production)",
    )

    # API Authentication
    API_KEY: str = Field(
        ...,
        min_length=1,
        description="Shared secret expected in X-API-Key or Authorization: Bearer",
    )

    # Rendered Application
    RENDER_APP_URL: str = Field(
        ...,
        description="Base URL of the web application whose pages are rendered",
    )
    ALLOWED_ORIGINS: List[str] = Field(
        default=["*"],
        description="CORS allowed origins outside production",
    )

    # Render Configuration
    MAX_CONCURRENT_JOBS: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Maximum number of simultaneously in-flight render jobs",
    )
    NAVIGATION_TIMEOUT_MS: int = Field(
        default=15000,
        gt=0,
        description="Time limit for page navigation to reach network idle",
    )
    READY_FLAG_TIMEOUT_MS: int = Field(
        default=10000,
        gt=0,
        description="Time limit for the page to set window.__RENDER_READY__",
    )

    # Chromium Configuration
    CHROMIUM_HEADLESS: bool = Field(
        default=True,
        description="Run Chromium headless",
    )
    CHROMIUM_ARGS: Annotated[List[str], NoDecode] = Field(
        default=["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"],
        description="Comma-separated Chromium launch switches",
    )

    # Storage Configuration (any S3-compatible endpoint)
    STORAGE_ENDPOINT_URL: str = Field(
        default="",
        description="S3-compatible endpoint URL (empty for AWS S3)",
    )
    STORAGE_REGION: str = Field(
        default="us-east-1",
        description="Storage region",
    )
    STORAGE_ACCESS_KEY_ID: str = Field(
        default="",
        description="Storage access key id (storage uploads disabled when empty)",
    )
    STORAGE_SECRET_ACCESS_KEY: str = Field(
        default="",
        description="Storage secret access key",
    )
    STORAGE_BUCKET: str = Field(
        default="renders",
        description="Bucket that receives rendered files",
    )
    SIGNED_URL_EXPIRY_SECONDS: int = Field(
        default=3600,
        gt=0,
        description="Lifetime of signed download URLs in seconds",
    )

    @field_validator("CHROMIUM_ARGS", mode="before")
    @classmethod
    def _split_chromium_args(cls, value):
        if isinstance(value, str):
            return [arg.strip() for arg in value.split(",") if arg.strip()]
        return value

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def storage_configured(self) -> bool:
        return bool(self.STORAGE_ACCESS_KEY_ID and self.STORAGE_SECRET_ACCESS_KEY)


# Global settings instance
settings = Settings()
