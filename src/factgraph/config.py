"""Application-wide configuration loaded from environment / .env file."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FACTGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/factgraph.db",
        description="Async SQLAlchemy database URL",
    )

    # ── Search index ─────────────────────────────────────
    enable_vector_index: bool = Field(
        default=False,
        description="Mirror indexed fact documents into a ChromaDB collection",
    )
    chroma_persist_dir: str = Field(
        default="./data/chroma",
        description="ChromaDB persistence directory",
    )
    chroma_collection: str = Field(default="factgraph_facts", description="ChromaDB collection name")

    # ── Server ───────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: LogLevel = LogLevel.INFO

    # ── Security ─────────────────────────────────────────
    secret_key: str = "change-me-in-production"
    subject_header: str = Field(
        default="X-Subject-ID",
        description="Request header carrying the calling subject's id",
    )

    # ── Paths ────────────────────────────────────────────
    data_dir: Path = Field(default=Path("./data"), description="Root data directory")

    def ensure_dirs(self) -> None:
        """Create required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if self.enable_vector_index:
            Path(self.chroma_persist_dir).mkdir(parents=True, exist_ok=True)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached singleton settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings
