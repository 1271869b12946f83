# backend/redimi/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/redimi.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///redimi.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" (durable, SQLAlchemy) or "memory" (process-local, for tests/demos)
    REDIMI_STORE_BACKEND = os.environ.get("REDIMI_STORE_BACKEND", "sql")

    # Unknown branch name on settings update: False keeps the active branch
    # unchanged, True rejects the update with a 404.
    REDIMI_STRICT_BRANCH_SELECTION = _env_flag("REDIMI_STRICT_BRANCH_SELECTION")

    # Attempts for balance compare-and-swap conflicts and transient DB locks
    REDIMI_RETRY_ATTEMPTS = int(os.environ.get("REDIMI_RETRY_ATTEMPTS", "3"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
