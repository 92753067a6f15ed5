"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
Scoring constants that define the engines' contracts live next to the
engines themselves; only windows, floors and TTLs are tunable.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # Balance Score windows
    BALANCE_LOOKBACK_DAYS: int = Field(default=14, ge=1)
    BALANCE_TREND_DAYS: int = Field(default=30, ge=1)

    # Check-in insights
    MIN_CHECKINS_FOR_INSIGHTS: int = Field(default=5, ge=1)
    # A cached insight older than this is recomputed by the caller.
    INSIGHT_CACHE_TTL_MINUTES: int = Field(default=10, ge=0)

    # Adaptive state
    MAX_RECOMMENDATIONS: int = Field(default=3, ge=1, le=3)
    CHECKIN_PROMPT_AFTER_HOURS: float = Field(default=20.0, gt=0)


# Global settings instance
settings = Settings()
