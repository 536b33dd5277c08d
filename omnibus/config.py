"""
Central configuration loader.
Reads from environment variables (via .env) into a typed Settings object.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Load .env from repo root (if present)
# ---------------------------------------------------------------------------
_REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_REPO_ROOT / ".env")


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "KC Frequency Omnibus"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = Field(default=False, validation_alias="OMNIBUS_DEBUG")
    LOG_LEVEL: str = Field(default="INFO", validation_alias="OMNIBUS_LOG_LEVEL")

    # Paths
    BASE_DIR: Path = _REPO_ROOT
    DATA_DIR: Path = Field(default=_REPO_ROOT / "data", validation_alias="OMNIBUS_DATA_DIR")

    # Database image: a filesystem path, an http(s) URL or ":memory:".
    # Empty means "<DATA_DIR>/database.sqlite".
    DATABASE_SOURCE: Optional[str] = Field(default=None, validation_alias="OMNIBUS_DATABASE_SOURCE")
    REQUEST_TIMEOUT: float = Field(default=30.0, validation_alias="OMNIBUS_REQUEST_TIMEOUT")

    # Import
    IMPORT_CHUNK_SIZE: int = Field(default=100, validation_alias="OMNIBUS_IMPORT_CHUNK_SIZE")

    # API Server
    API_HOST: str = Field(default="0.0.0.0", validation_alias="OMNIBUS_API_HOST")
    API_PORT: int = Field(default=8000, validation_alias="OMNIBUS_API_PORT")
    RELOAD: bool = Field(default=False, validation_alias="OMNIBUS_RELOAD")

    @property
    def database_source(self) -> str:
        return self.DATABASE_SOURCE or str(self.DATA_DIR / "database.sqlite")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
def get_repo_root() -> Path:
    return _REPO_ROOT


def get_db_path() -> Path:
    return get_settings().DATA_DIR / "database.sqlite"
