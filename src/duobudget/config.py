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


def _env_number(name: str, default: float, *, cast: type = float) -> Any:
    """Read a numeric environment variable, rejecting negative values."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        number = cast(value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc
    if number < 0:
        raise ValueError(f"{name} must not be negative, got {value!r}")
    return number


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "DuoBudget"
    DB_FILENAME = "duobudget.db"
    IMPORT_DELIMITERS = {"bank_export": ";", "generic": ","}

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("DUOBUDGET_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("DUOBUDGET_DATABASE_URL", self._build_sqlite_url())
        self.IMPORT_MAX_WORKERS: int = _env_number("DUOBUDGET_IMPORT_MAX_WORKERS", 8, cast=int)
        self.IMPORT_TIMEOUT_SECONDS: float = _env_number("DUOBUDGET_IMPORT_TIMEOUT_SECONDS", 120.0)
        self.IMPORT_CONFLICT_BACKOFF: float = _env_number("DUOBUDGET_IMPORT_CONFLICT_BACKOFF", 0.1)
        self.MAX_UPLOAD_BYTES: int = _env_number(
            "DUOBUDGET_MAX_UPLOAD_BYTES", 10 * 1024 * 1024, cast=int
        )
        if self.IMPORT_MAX_WORKERS < 1:
            raise ValueError("DUOBUDGET_IMPORT_MAX_WORKERS must be at least 1.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("DUOBUDGET_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def delimiter_for(self, dialect: str) -> str:
        """Return the column delimiter configured for a header dialect."""

        try:
            return self.IMPORT_DELIMITERS[dialect]
        except KeyError:
            raise ValueError(f"Unknown CSV dialect: {dialect}") from None

    @property
    def import_timeout(self) -> float | None:
        """Whole-run import timeout in seconds, ``None`` when disabled."""

        return self.IMPORT_TIMEOUT_SECONDS or None

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            # row tasks run on worker threads, each with its own session
            return {"connect_args": {"check_same_thread": False, "timeout": 30}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration used by the test-suite: no timeout surprises, no backoff."""

    __test__ = False

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.IMPORT_CONFLICT_BACKOFF = 0.0
