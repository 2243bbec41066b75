# src/taskboard/config.py

"""
Settings for the task board, read once from TASKBOARD_* environment
variables. A .env file in the working directory is loaded first and never
overrides variables that are already set.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKBOARD"

_TRUE = frozenset({"1", "true", "yes", "y", "on"})

load_dotenv(override=False)


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _raw(name: str) -> str | None:
    """Env value with blanks treated as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env(name: str, default: str = "") -> str:
    value = _raw(name)
    return default if value is None else value


def _env_bool(name: str, default: bool) -> bool:
    value = _raw(name)
    return default if value is None else value.lower() in _TRUE


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    value = _raw(name)
    if value is None:
        return default
    try:
        return max(minimum, int(value))
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    value = _raw(name)
    return default if value is None else Path(value).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    app_name: str
    log_level: str
    console_enabled: bool

    # Local data (gitignored); the log file lives in data_dir too.
    data_dir: Path
    db_path: Path

    page_size: int
    latest_changes_limit: int

    @staticmethod
    def from_env() -> "Settings":
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskboard"))
        return Settings(
            app_name=_env(_k("APP_NAME"), "taskboard"),
            log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
            console_enabled=_env_bool(_k("CONSOLE_ENABLED"), True),
            data_dir=data_dir,
            db_path=_env_path(_k("DB_PATH"), data_dir / "tasks.sqlite3"),
            # 50 is the web list page, 9 the mobile one.
            page_size=_env_int(_k("PAGE_SIZE"), 50),
            latest_changes_limit=_env_int(_k("LATEST_CHANGES_LIMIT"), 15),
        )


def _apply_local_overrides(settings: Settings) -> Settings:
    """Apply PAGE_SIZE / DB_PATH from an uncommitted config_local.py, if present."""
    try:
        import config_local  # type: ignore
    except ImportError:
        return settings

    overrides: dict[str, object] = {}
    if hasattr(config_local, "PAGE_SIZE"):
        overrides["page_size"] = max(1, int(config_local.PAGE_SIZE))
    if hasattr(config_local, "DB_PATH"):
        overrides["db_path"] = Path(config_local.DB_PATH).expanduser()
    return replace(settings, **overrides) if overrides else settings


SETTINGS = _apply_local_overrides(Settings.from_env())


def get_settings() -> Settings:
    return SETTINGS
