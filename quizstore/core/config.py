"""
Library configuration with environment-based settings.
"""
from typing import Optional
from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

WEEK_SCHEMES = ("iso", "us")


class Settings(BaseSettings):
    """Main library settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ============= Application Settings =============
    APP_NAME: str = "Quiz Store"
    ENVIRONMENT: str = Field(default="development")

    # ============= Database Settings =============
    DATABASE_URL: str = Field(default="sqlite:///quiz.db")
    DATABASE_ECHO: bool = False

    # ============= Statistics Settings =============
    WEEK_SCHEME: str = Field(default="iso")
    PURGE_ORPHAN_STATISTICS: bool = False

    # ============= Logging Settings =============
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # json or text
    LOG_FILE: Optional[str] = None

    @field_validator("WEEK_SCHEME")
    @classmethod
    def check_week_scheme(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in WEEK_SCHEMES:
            raise ValueError(f"WEEK_SCHEME must be one of {', '.join(WEEK_SCHEMES)}")
        return v

    @field_validator("LOG_FORMAT")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return v

    def is_sqlite(self) -> bool:
        """Check if the store is a SQLite database."""
        return self.DATABASE_URL.startswith("sqlite")

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT.lower() == "production"

    def is_testing(self) -> bool:
        """Check if running in testing."""
        return self.ENVIRONMENT.lower() == "testing"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
