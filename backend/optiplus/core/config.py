from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized configuration for the Opti-Plus datasets service.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Opti-Plus"

    # Backend
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000
    log_level: str = "INFO"
    log_file: str | None = None
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8501",
    ]

    # Dataset storage
    upload_dir: Path = Path("public") / "uploads" / "datasets"
    preview_rows: int = 3

    @property
    def public_upload_prefix(self) -> str:
        # URL prefix the raw uploads are served under
        return "/uploads/datasets"


@lru_cache
def get_settings() -> Settings:
    return Settings()
