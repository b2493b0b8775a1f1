"""
Runtime settings, read from the environment on every call.

Defaults:
- DATABASE_URL: sqlite:///./data/app.db
- DB_BUSY_TIMEOUT_S: 5
- SESSION_CODE_LENGTH: 6
- AUTO_MIGRATE: off
"""
from __future__ import annotations

import os

DEFAULT_DATABASE_URL = "sqlite:///./data/app.db"


def env_flag(name: str, default: bool = False) -> bool:
    v = os.environ.get(name)
    if v is None:
        return default
    v = v.strip().lower()
    return v not in ("0", "false", "no", "off", "")


def get_app_version() -> str:
    return os.getenv("APP_VERSION", "0.1.0")


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def get_busy_timeout() -> float:
    raw = os.getenv("DB_BUSY_TIMEOUT_S", "5")
    try:
        v = float(raw)
    except ValueError:
        return 5.0
    return v if v > 0 else 5.0


def get_session_code_length() -> int:
    raw = os.getenv("SESSION_CODE_LENGTH", "6")
    try:
        v = int(raw)
    except ValueError:
        return 6
    # short codes collide too often, long ones are awkward to type
    if v < 4:
        return 4
    if v > 12:
        return 12
    return v


def auto_migrate_enabled() -> bool:
    return env_flag("AUTO_MIGRATE", default=False)
