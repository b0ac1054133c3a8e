from __future__ import annotations

import os
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# frozen builds keep .env files next to the executable
PROJECT_ROOT = (
    Path(sys.executable).resolve().parent
    if getattr(sys, "frozen", False)
    else Path(__file__).resolve().parents[1]
)


def _first_existing(name: str, bases: Iterable[Path]) -> Path | None:
    return next((base / name for base in bases if (base / name).exists()), None)


def load_env(bases: Iterable[Path] | None = None) -> list[Path]:
    """Load ``.env`` then ``.env.<APP_ENV>`` (overriding); returns the files read."""
    search = list(bases) if bases is not None else [Path.cwd(), PROJECT_ROOT]
    env_name = os.getenv("APP_ENV", "development")
    loaded: list[Path] = []
    for name, override in ((".env", False), (f".env.{env_name}", True)):
        path = _first_existing(name, search)
        if path is not None:
            load_dotenv(path, override=override)
            loaded.append(path)
    return loaded


@dataclass(frozen=True)
class Settings:
    database_url: str
    storage_key: str = "tasks"
    storage_max_bytes: int | None = 5_000_000
    log_level: str = "INFO"
    log_dir: str = "logs"


def load_settings() -> Settings:
    """Build ``Settings`` from the current environment.

    ``STORAGE_MAX_BYTES=0`` disables the size limit.
    """
    database_url = os.getenv("DATABASE_URL", "").strip()
    max_bytes = int(os.getenv("STORAGE_MAX_BYTES", "5000000"))
    return Settings(
        database_url=database_url or f"sqlite:///{PROJECT_ROOT / 'tasktree.sqlite3'}",
        storage_key=os.getenv("STORAGE_KEY", "").strip() or "tasks",
        storage_max_bytes=max_bytes if max_bytes > 0 else None,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
    )


load_env()

SETTINGS = load_settings()
