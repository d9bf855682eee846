"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be numeric, got {value!r}") from exc


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "Pennywise"
    DB_FILENAME = "pennywise.db"
    LOG_FILENAME = "pennywise.log"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}
    TESTING = False

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("PENNYWISE_SECRET_KEY", "replace-me")
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("PENNYWISE_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("PENNYWISE_DATABASE_URL", self._build_sqlite_url())
        self.ALERT_THRESHOLD = _env_float("PENNYWISE_ALERT_THRESHOLD", 80.0)
        self.RETENTION_DAYS = _env_int("PENNYWISE_RETENTION_DAYS", 90)
        self.PURGE_HOUR = _env_int("PENNYWISE_PURGE_HOUR", 3)
        self.SCHEDULER_ENABLED = _env_bool("PENNYWISE_SCHEDULER_ENABLED", default=False)

        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("PENNYWISE_SECRET_KEY must be set in non-dev mode.")
        if not 50 <= self.ALERT_THRESHOLD <= 100:
            raise ValueError("PENNYWISE_ALERT_THRESHOLD must be between 50 and 100.")
        if self.RETENTION_DAYS < 1:
            raise ValueError("PENNYWISE_RETENTION_DAYS must be at least 1.")
        if not 0 <= self.PURGE_HOUR <= 23:
            raise ValueError("PENNYWISE_PURGE_HOUR must be an hour between 0 and 23.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("PENNYWISE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True


class TestConfig(BaseConfig):
    """Configuration used by the test-suite and throwaway environments."""

    TESTING = True
