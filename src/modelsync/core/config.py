"""Settings for modelsync, read from MODELSYNC_* environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATABASE_URL = "sqlite:///./modelsync.db"


class ModelSyncSettings(BaseSettings):
    """Runtime configuration.

    Priority: explicit constructor arguments, then environment, then defaults.
    """

    database_url: str = Field(default=DEFAULT_DATABASE_URL, description="SQLAlchemy URL")
    echo: bool = Field(default=False, description="Echo SQL statements")
    fixture_dir: Path | None = Field(default=None, description="Directory of <Entity>.json seeds")
    models_file: Path | None = Field(default=None, description="JSON file of entity specs")
    log_level: str = Field(default="WARNING", description="Log level used by the CLI")

    model_config = SettingsConfigDict(env_prefix="MODELSYNC_")
