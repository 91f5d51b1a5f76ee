"""
Engine configuration from environment variables.
Loaded once and cached; call get_settings.cache_clear() after changing the environment.
"""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field

ENV_PREFIX = "LEAGUE_ENGINE_"


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


class Settings(BaseModel):
    """Validated runtime settings."""
    db_path: Path = Field(default_factory=lambda: _project_root() / "data" / "league.db")
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_to_file: bool = False
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )


def _env(name: str) -> str | None:
    value = os.environ.get(ENV_PREFIX + name, "").strip()
    return value or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Build settings from LEAGUE_ENGINE_* variables; unset variables keep their defaults.
    e.g. LEAGUE_ENGINE_DB_PATH=/tmp/league.db uvicorn league_engine.api:app
    """
    overrides: dict[str, object] = {}
    db_path = _env("DB_PATH")
    if db_path is not None:
        overrides["db_path"] = db_path
    level = _env("LOG_LEVEL")
    if level is not None:
        overrides["log_level"] = level.upper()
    log_dir = _env("LOG_DIR")
    if log_dir is not None:
        overrides["log_dir"] = log_dir
    to_file = _env("LOG_TO_FILE")
    if to_file is not None:
        overrides["log_to_file"] = to_file.lower() in ("1", "true", "yes", "on")
    origins = _env("CORS_ORIGINS")
    if origins is not None:
        overrides["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]
    return Settings(**overrides)
