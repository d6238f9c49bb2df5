# src/smart_tasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Bad values fall back to defaults instead of crashing the app.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "SMART_TASKS"

DEFAULT_STORAGE_KEY = "gemini-tasks-ai-data"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-3-flash-preview"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data (ignored by git) ----
    data_dir: Path
    storage_path: Path
    storage_key: str

    # ---- Suggestions (OpenAI-compatible endpoint) ----
    suggestions_enabled: bool
    llm_api_key: Optional[str]
    llm_base_url: str
    llm_model: str
    llm_connect_timeout: float
    llm_read_timeout: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "smart-tasks").strip() or "smart-tasks"
        log_level = _env(_k("LOG_LEVEL"), "WARNING")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/smart_tasks"))
        storage_path = _env_path(_k("STORAGE_PATH"), data_dir / "storage.json")
        storage_key = _env(_k("STORAGE_KEY"), DEFAULT_STORAGE_KEY).strip() or DEFAULT_STORAGE_KEY

        suggestions_enabled = _env_bool(_k("SUGGESTIONS_ENABLED"), True)
        llm_api_key = _first_env(_k("API_KEY"), "GEMINI_API_KEY", "API_KEY", default=None)
        llm_base_url = _env(_k("BASE_URL"), DEFAULT_BASE_URL)
        llm_model = _env(_k("MODEL"), DEFAULT_MODEL).strip() or DEFAULT_MODEL

        connect_timeout = _env_float(_k("CONNECT_TIMEOUT_SECONDS"), 5.0)
        read_timeout = _env_float(_k("READ_TIMEOUT_SECONDS"), 30.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            storage_path=storage_path,
            storage_key=storage_key,
            suggestions_enabled=suggestions_enabled,
            llm_api_key=llm_api_key,
            llm_base_url=llm_base_url,
            llm_model=llm_model,
            llm_connect_timeout=max(0.5, connect_timeout),
            llm_read_timeout=max(1.0, read_timeout),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
