"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables (.env file).
"""

from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Project Info
    PROJECT_NAME: str = "Stride Load: adaptive weekly training-load engine"
    VERSION: str = "0.1.0"
    AUTHORS: List[str] = ["Stride Load contributors"]
    PROJECT_URL: str = "https://github.com/stride-load/stride-load"

    DEBUG: bool = False

    # Database (key-value store for carried adaptation state)
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = "postgres"
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_DBNAME: str = "stride_load"

    # Full URL override, e.g. ``sqlite:///./stride_load.db``
    DATABASE_URL_OVERRIDE: Optional[str] = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Session guards: "strict" raises on ownership violations,
    # "soft" logs them and refuses the operation.
    GUARD_MODE: Literal["soft", "strict"] = "soft"
    SESSION_SOFT_CAP: int = 4

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (f"postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}@{self.DATABASE_HOST}"
                f":{self.DATABASE_PORT}/{self.DATABASE_DBNAME}")


# Global settings instance
settings = Settings()
