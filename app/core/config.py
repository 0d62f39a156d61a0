"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (bot token, storage paths, upload limits)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal, List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # Telegram Bot API
    HOSTING_BOT_TOKEN: Optional[str] = Field(
        default=None,
        description="Token of the hosting bot that receives user commands"
    )
    TELEGRAM_API_BASE: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )
    TELEGRAM_API_TIMEOUT: float = Field(
        default=15.0,
        description="Bot API request timeout in seconds"
    )
    DOWNLOAD_TIMEOUT: float = Field(
        default=30.0,
        description="File download timeout in seconds"
    )

    # Public hosting
    PUBLIC_BASE_URL: str = Field(
        default="https://bots.example.com/user_bots",
        description="Public URL prefix under which user files are served"
    )
    PUBLIC_APP_URL: str = Field(
        default="http://localhost:8000",
        description="Public base URL of this app (for registering the hosting bot webhook)"
    )

    # Storage
    USER_FILES_DIR: str = Field(
        default="user_bots",
        description="Root directory holding one directory per user"
    )
    STATES_DIR: str = Field(
        default="states",
        description="Directory holding session state and pending token records"
    )
    TEMP_DIR: str = Field(
        default="temp",
        description="Directory for temporary response artifacts"
    )

    # Upload policy
    UPLOAD_POLICY: Literal["general", "script"] = Field(
        default="general",
        description="'general' accepts any file, 'script' accepts executable scripts only"
    )
    MAX_FILES_PER_USER: int = Field(
        default=10,
        description="Maximum number of files a user can keep"
    )
    MAX_FILE_SIZE: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum size of a single file in bytes"
    )
    ALLOWED_EXTENSIONS: Optional[List[str]] = Field(
        default=None,
        description="Allowed file extensions (overrides the policy preset)"
    )
    CONTENT_GATE_ENABLED: Optional[bool] = Field(
        default=None,
        description="Scan uploads for dangerous calls (overrides the policy preset)"
    )

    # Responses
    INLINE_RESPONSE_LIMIT: int = Field(
        default=4000,
        description="Longest message sent inline; longer API results are sent as a document"
    )
    SIZE_DECIMALS: int = Field(
        default=2,
        description="Decimal places used when formatting byte sizes"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )

    @validator("HOSTING_BOT_TOKEN")
    def validate_hosting_token(cls, v, values):
        """Ensure the hosting bot token is set in production."""
        if values.get("ENVIRONMENT") == "production" and not v:
            raise ValueError("HOSTING_BOT_TOKEN is required in production environment")
        return v

    @validator("PUBLIC_BASE_URL", "PUBLIC_APP_URL")
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @validator("ALLOWED_EXTENSIONS")
    def normalize_extensions(cls, v):
        """Store extensions lowercase and without the leading dot."""
        if v is None:
            return v
        return [ext.lower().lstrip(".") for ext in v if ext.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings(config: Optional[Settings] = None):
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    config = config or settings
    errors = []

    if not config.PUBLIC_BASE_URL:
        errors.append("PUBLIC_BASE_URL is required")

    if not config.TELEGRAM_API_BASE:
        errors.append("TELEGRAM_API_BASE is required")

    if config.MAX_FILES_PER_USER <= 0:
        errors.append("MAX_FILES_PER_USER must be positive")

    if config.MAX_FILE_SIZE <= 0:
        errors.append("MAX_FILE_SIZE must be positive")

    if config.INLINE_RESPONSE_LIMIT <= 0:
        errors.append("INLINE_RESPONSE_LIMIT must be positive")

    if config.ALLOWED_EXTENSIONS is not None and not config.ALLOWED_EXTENSIONS:
        errors.append("ALLOWED_EXTENSIONS must not be an empty list")

    # Production-specific validations
    if config.is_production and not config.HOSTING_BOT_TOKEN:
        errors.append("HOSTING_BOT_TOKEN is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
