"""Runtime configuration for the project board.

Settings come from ``TASKBOARD_*`` environment variables with local-dev
defaults under ``data/``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

_REPO_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = _REPO_ROOT / "data"

PREFIX = "TASKBOARD_"

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def parse_bool(value: Any, default: bool) -> bool:
    """Lenient boolean for env vars and JSON toggles; unknown values give ``default``."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    return default


def _setting(key: str, *, strip: bool = True) -> Optional[str]:
    """``TASKBOARD_<key>``, or None when unset or blank."""
    raw = os.environ.get(PREFIX + key)
    if raw is None:
        return None
    value = raw.strip() if strip else raw
    return value or None


def _setting_int(key: str, default: int) -> int:
    raw = _setting(key)
    try:
        return int(raw) if raw is not None else default
    except ValueError:
        return default


def _setting_path(key: str, default: Path) -> Path:
    raw = _setting(key)
    return Path(raw).expanduser() if raw else default


def _database_url() -> str:
    # app-specific first, then the shared platform database, then the host's generic one
    for name in (PREFIX + "DATABASE_URL", "PLATFORM_DATABASE_URL", "DATABASE_URL"):
        value = (os.environ.get(name) or "").strip()
        if value:
            return value
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{(DATA_DIR / 'taskboard.db').as_posix()}"


@dataclass(frozen=True)
class AppConfig:
    """Env-first configuration with safe local-dev defaults.

    Database selection:
    - TASKBOARD_DATABASE_URL: app-specific DB URL (preferred)
    - PLATFORM_DATABASE_URL: shared DB URL
    - DATABASE_URL: generic fallback, e.g. the hosted Postgres instance
    - If none is set, defaults to local SQLite at data/taskboard.db

    Storage and logging:
    - TASKBOARD_STORAGE_DIR: where uploaded attachments live (default: data/attachments)
    - TASKBOARD_LOG_LEVEL: DEBUG/INFO/WARNING/ERROR (default: INFO)
    - TASKBOARD_LOG_DIR: rotating log file directory (default: data/logs)
    - TASKBOARD_SQL_ECHO: echo SQL statements to the log (default: off)

    Auth:
    - TASKBOARD_RESET_TOKEN_MINUTES: password reset token lifetime (default: 60)
    - TASKBOARD_ADMIN_EMAIL / TASKBOARD_ADMIN_PASSWORD: bootstrap admin
      account created on first start when both are set.
    """

    database_url: str
    storage_dir: Path
    log_level: str
    log_dir: Path
    sql_echo: bool
    reset_token_minutes: int
    admin_email: Optional[str]
    admin_password: Optional[str]

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            database_url=_database_url(),
            storage_dir=_setting_path("STORAGE_DIR", DATA_DIR / "attachments"),
            log_level=(_setting("LOG_LEVEL") or "INFO").upper(),
            log_dir=_setting_path("LOG_DIR", DATA_DIR / "logs"),
            sql_echo=parse_bool(_setting("SQL_ECHO"), False),
            reset_token_minutes=max(1, _setting_int("RESET_TOKEN_MINUTES", 60)),
            admin_email=_setting("ADMIN_EMAIL"),
            admin_password=_setting("ADMIN_PASSWORD", strip=False),
        )


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the app configuration (cached)."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    global _config
    _config = None
