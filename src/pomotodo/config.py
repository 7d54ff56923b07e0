# src/pomotodo/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Components receive settings by injection; nothing reads os.environ on its own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "POMO"

DEFAULT_DB_NAME = "Pomodoro1"
DEFAULT_DB_VERSION = "1.0"
DEFAULT_DB_DISPLAY_NAME = "Pomodoro BBM"
DEFAULT_DB_SIZE_BYTES = 2 * 1024 * 1024


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


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

    # ---- Database ----
    db_name: str
    db_version: str
    db_display_name: str
    db_size_bytes: int

    # ---- Timer ----
    pomodoro_minutes: int
    tick_seconds: float

    @property
    def pomodoro_ms(self) -> int:
        return self.pomodoro_minutes * 60 * 1000

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "pomotodo") or "pomotodo"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pomotodo"))

        db_name = _env(_k("DB_NAME"), DEFAULT_DB_NAME).strip() or DEFAULT_DB_NAME
        db_version = _env(_k("DB_VERSION"), DEFAULT_DB_VERSION)
        db_display_name = _env(_k("DB_DISPLAY_NAME"), DEFAULT_DB_DISPLAY_NAME)
        db_size_bytes = _env_int(_k("DB_SIZE_BYTES"), DEFAULT_DB_SIZE_BYTES)

        pomodoro_minutes = max(1, _env_int(_k("POMODORO_MINUTES"), 45))
        tick_seconds = max(0.01, _env_float(_k("TICK_SECONDS"), 1.0))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_name=db_name,
            db_version=db_version,
            db_display_name=db_display_name,
            db_size_bytes=db_size_bytes,
            pomodoro_minutes=pomodoro_minutes,
            tick_seconds=tick_seconds,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Load .env (without overriding the real environment) and build settings once."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
