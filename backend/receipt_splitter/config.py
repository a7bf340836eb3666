"""
Configuration settings for the Receipt Splitter backend.

Loads environment variables from .env file and provides typed configuration.
"""

from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    APP_HOST: str = Field(default="0.0.0.0", description="Interface to bind")
    APP_PORT: int = Field(default=8080, description="Port to listen on")
    CORS_ORIGINS: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # Security Configuration
    JWT_SECRET: str = Field(
        default="",
        description="HMAC secret for signing tokens; checked on every request",
    )
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=24 * 60, description="Access token expiration time in minutes"
    )
    LOGIN_RATE_LIMIT: str = Field(
        default="10/minute", description="slowapi limit applied to /login"
    )
    RATE_LIMIT_ENABLED: bool = Field(default=True)

    # Database Configuration
    DATABASE_URL: str = Field(
        default="sqlite:///./data/receipts.db", description="SQLAlchemy database URL"
    )
    DB_HOST: Optional[str] = None
    DB_PORT: int = 5432
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_NAME: Optional[str] = None
    DATABASE_ECHO: bool = Field(
        default=False, description="Echo SQL queries (for debugging)"
    )

    # OCR Configuration (Google Cloud Vision)
    GOOGLE_API_KEY: str = Field(default="", description="Cloud Vision API key")
    VISION_API_URL: str = Field(
        default="https://vision.googleapis.com/v1/images:annotate",
        description="Cloud Vision annotate endpoint",
    )
    OCR_TIMEOUT: float = Field(default=30.0, description="OCR request timeout in seconds")

    # LLM Configuration (OpenAI)
    OPENAI_API_KEY: str = Field(
        default="",
        validation_alias=AliasChoices("OPENAI_API_KEY", "OPENAPI_API_KEY"),
        description="OpenAI API key",
    )
    OPENAI_MODEL: str = Field(
        default="gpt-4o", description="Chat model used to structure receipts"
    )
    LLM_TIMEOUT: float = Field(default=60.0, description="LLM request timeout in seconds")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    @property
    def database_url(self) -> str:
        """Resolved connection string; DB_* variables win over DATABASE_URL."""
        if not self.DB_HOST:
            return self.DATABASE_URL
        return URL.create(
            "postgresql+psycopg",
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        ).render_as_string(hide_password=False)


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Dependency returning the process-wide settings."""
    return settings
