"""
Rope Puzzle Auto-Fill - Backend Configuration

Settings are read from environment variables (and .env).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from functools import lru_cache
from typing import Literal


class Settings(BaseSettings):
    """Application settings."""

    # App
    APP_NAME: str = "Rope Auto-Fill"
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"
    ENVIRONMENT: Literal["development", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Rate Limiting (generation is CPU-bound)
    RATE_LIMIT_GENERATE: int = 30
    MAX_REQUEST_BYTES: int = 1024 * 256
    MAX_GRID_SIZE: int = 50

    # Growth tuning
    AUTOFILL_TURN_CHANCE: float = 0.35
    AUTOFILL_CORRIDOR_BIAS: float = 0.6
    AUTOFILL_EARLY_STOP_CHANCE: float = 0.3
    AUTOFILL_ATTEMPTS_PER_CELL: int = 10
    AUTOFILL_REPAIR_ATTEMPTS: int = 10

    # AutoTune defaults
    TUNE_TARGET_SCORE_MIN: float = 25
    TUNE_TARGET_SCORE_MAX: float = 60
    TUNE_MAX_ATTEMPTS: int = 25
    TUNE_K_MAX_CEILING: int = 15
    TUNE_MAX_LEN_CEILING: int = 80

    # Hard guards
    GUARD_FIRST_BREAK_THRESHOLD: int = 10
    GUARD_KEY_LOCK_THRESHOLD: int = 10
    GUARD_FREE_AHEAD_THRESHOLD: float = 0.35
    GUARD_SMALL_LEVEL_ROPES: int = 30

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL must be a logging level name, got: {value}")
        return level

    @field_validator("AUTOFILL_TURN_CHANCE", "AUTOFILL_CORRIDOR_BIAS", "AUTOFILL_EARLY_STOP_CHANCE")
    @classmethod
    def validate_probability(cls, value: float) -> float:
        if not 0 <= value <= 1:
            raise ValueError(f"probability must be within [0, 1], got: {value}")
        return value

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """Split CORS_ORIGINS into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get settings (cached)."""
    return Settings()


settings = get_settings()
