"""Configuration settings for quickdoc."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def sqlite_path_from_url(url: str) -> Optional[Path]:
    """Filesystem path named by a sqlite:/// URL, or None for in-memory databases."""
    if not url.startswith("sqlite://"):
        return None
    raw = url[len("sqlite://"):]
    if raw in ("", "/:memory:", ":memory:"):
        return None
    return Path(raw[1:] if raw.startswith("/") else raw)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    DEBUG: bool = Field(default=False, description="Debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FILE: Optional[Path] = Field(
        default=None, description="Optional file that receives log records"
    )

    # Connection
    DATABASE_URL: str = Field(
        default="sqlite:///./data/quickdoc.db",
        description="Backend URL (sqlite:///path or redis://host:port/db)",
    )
    SQLITE_TIMEOUT_SECONDS: float = Field(
        default=5.0, description="SQLite busy timeout in seconds"
    )
    REDIS_KEY_PREFIX: str = Field(
        default="quickdoc", description="Prefix for Redis collection hashes"
    )

    # Collections
    COLLECTION_NAME: str = Field(
        default="JSON", description="Default collection name"
    )
    CHILD_COLLECTION_SUFFIX: str = Field(
        default="_child",
        description="Suffix for a shared-connection child that would collide with its parent",
    )
    SHARE_CONNECTION_FROM_PARENT: bool = Field(
        default=True, description="Children borrow the parent's connection by default"
    )

    def __repr__(self) -> str:
        """String representation of settings."""
        return f"Settings(url={self.DATABASE_URL}, collection={self.COLLECTION_NAME}, debug={self.DEBUG})"
