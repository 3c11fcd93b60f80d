"""Global settings.

Every user-configurable value is read from the ``.env`` file or the
environment at startup and exposed through the ``settings`` instance below.

Usage:
    1. Create a ``.env`` file next to ``app.py`` (optional)
    2. Or export the variables, e.g. ``DATABASE_URL=sqlite:///data/tips.db``
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings - every field can be overridden by .env or env vars"""

    # ========== Database ==========
    database_url: str = "sqlite:///data/tips.db"

    # ========== Display ==========
    currency_symbol: str = "$"

    # ========== Logging ==========
    log_level: str = "INFO"
    log_file: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
