"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, provider credentials, etc.)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="reimburzi",
        description="MongoDB database name"
    )

    # Twilio WhatsApp
    TWILIO_ACCOUNT_SID: Optional[str] = Field(
        default=None,
        description="Twilio account SID"
    )
    TWILIO_AUTH_TOKEN: Optional[str] = Field(
        default=None,
        description="Twilio auth token"
    )
    TWILIO_WHATSAPP_NUMBER: Optional[str] = Field(
        default=None,
        description="Sender number, e.g. whatsapp:+14155238886"
    )
    TWILIO_API_BASE_URL: str = Field(
        default="https://api.twilio.com/2010-04-01",
        description="Twilio REST API base URL"
    )
    TWILIO_TIMEOUT: float = Field(
        default=10.0,
        description="Twilio request timeout in seconds"
    )
    TWILIO_MAX_RETRIES: int = Field(
        default=3,
        description="Retries when Twilio signals a rate limit"
    )
    TWILIO_RETRY_DELAY_SECONDS: float = Field(
        default=1.0,
        description="Fixed delay between rate-limited send attempts"
    )

    # Google Cloud Vision
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = Field(
        default=None,
        description="Path to a service account JSON file (falls back to default credentials)"
    )
    MEDIA_DOWNLOAD_TIMEOUT: float = Field(
        default=20.0,
        description="Timeout for downloading receipt media from Twilio"
    )

    # OpenAI
    OPENAI_API_KEY: Optional[str] = Field(
        default=None,
        description="OpenAI API key for receipt parsing and summaries"
    )
    OPENAI_PARSER_MODEL: str = Field(
        default="gpt-4o-mini",
        description="Model used to structure receipt text"
    )
    OPENAI_SUMMARY_MODEL: str = Field(
        default="gpt-4o-mini",
        description="Model used to write summary insights"
    )
    OPENAI_TIMEOUT: float = Field(
        default=30.0,
        description="OpenAI request timeout in seconds"
    )

    # Domain
    DEFAULT_CURRENCY: str = Field(
        default="AED",
        description="Currency used when reporting spending summaries"
    )
    DEFAULT_COMPANY_ID: str = Field(
        default="default",
        description="Organization tag assigned to new users"
    )
    ONBOARDING_TTL_MINUTES: int = Field(
        default=0,
        description="Drop unfinished onboarding after this many idle minutes (0 = never)"
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
        default="/api",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @validator("TWILIO_AUTH_TOKEN")
    def validate_twilio_token(cls, v, values):
        """Ensure Twilio credentials are set in production."""
        if values.get("ENVIRONMENT") == "production" and not v:
            raise ValueError("TWILIO_AUTH_TOKEN is required in production environment")
        return v

    @validator("OPENAI_API_KEY")
    def validate_openai_key(cls, v, values):
        """Ensure the OpenAI key is set in production."""
        if values.get("ENVIRONMENT") == "production" and not v:
            raise ValueError("OPENAI_API_KEY is required in production environment")
        return v

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
        extra = "ignore"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if settings.TWILIO_MAX_RETRIES < 0:
        errors.append("TWILIO_MAX_RETRIES must not be negative")

    # Production-specific validations
    if settings.is_production:
        if not settings.TWILIO_ACCOUNT_SID:
            errors.append("TWILIO_ACCOUNT_SID is required in production")
        if not settings.TWILIO_WHATSAPP_NUMBER:
            errors.append("TWILIO_WHATSAPP_NUMBER is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
