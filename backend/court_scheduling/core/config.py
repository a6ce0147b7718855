# court_scheduling/core/config.py
"""
Application configuration using Pydantic Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import json
from pydantic import field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """

    # Application
    APP_NAME: str = "Court Scheduler"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str

    # JWT Authentication
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours

    # CORS
    CORS_ORIGINS: str = '["http://localhost:3000"]'

    # Court calendar
    COURT_TIMEZONE: str = "Asia/Colombo"
    DEFAULT_COURTROOM: str = "Main Court"

    # Conflict detection
    # overlap = true [start, end) interval overlap, exact = identical start/end only
    CONFLICT_CHECK_MODE: str = "overlap"
    CONFLICT_SCOPE_INCLUDES_COURTROOM: bool = True

    # Idempotency
    IDEMPOTENCY_TTL_HOURS: int = 24

    @field_validator("CONFLICT_CHECK_MODE", mode="before")
    @classmethod
    def normalize_conflict_mode(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip().lower()
        if v not in ("overlap", "exact"):
            raise ValueError("CONFLICT_CHECK_MODE must be 'overlap' or 'exact'")
        return v

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from string to list"""
        try:
            if isinstance(self.CORS_ORIGINS, str):
                return json.loads(self.CORS_ORIGINS)
            return self.CORS_ORIGINS
        except json.JSONDecodeError:
            return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


# Create settings instance
settings = Settings()
