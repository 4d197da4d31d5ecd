import logging
import os
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "PrepPal"
    api_prefix: str = "/api"

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    coaching_temperature: float = 0.7
    coaching_timeout_seconds: float = 30.0

    database_url: str = "sqlite:////tmp/preppal.db"
    storage_prefix: str = "preppal"

    log_level: str = "INFO"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()


def log_environment():
    logger.info("[config] OPENAI_API_KEY set: %s", "OPENAI_API_KEY" in os.environ)
    logger.info("[config] Using database: %s", "SQLite" if settings.is_sqlite else "Postgres")
