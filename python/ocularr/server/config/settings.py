"""Settings configuration for the Ocularr cycle engine."""

import os
from functools import lru_cache

from ...utils import resolve_db_path


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings read from the process environment."""

    def __init__(self):
        # Application
        self.APP_NAME = os.getenv("APP_NAME", "Ocularr")
        self.APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
        self.APP_ENVIRONMENT = os.getenv("APP_ENVIRONMENT", "development")

        # Database
        self.DATABASE_URL = os.getenv(
            "DATABASE_URL", f"sqlite:///{resolve_db_path()}"
        )
        self.DB_ECHO = _env_bool("DB_ECHO")

        # Logging
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # Scoring and limits
        self.POINTS_PER_PLACE = int(os.getenv("POINTS_PER_PLACE", "2"))
        self.THEME_MAX_LENGTH = int(os.getenv("THEME_MAX_LENGTH", "200"))
        self.HISTORY_PAGE_LIMIT = int(os.getenv("HISTORY_PAGE_LIMIT", "10"))
        self.RECENT_WINNERS_LIMIT = int(os.getenv("RECENT_WINNERS_LIMIT", "5"))


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
