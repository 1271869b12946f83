"""Store backends and per-application selection."""

from __future__ import annotations

from flask import Flask, current_app

from .base import LoyaltyStore
from .memory_store import MemoryLoyaltyStore
from .sql_store import SqlLoyaltyStore


EXTENSION_KEY = "redimi_store"

BACKENDS = {
    SqlLoyaltyStore.name: SqlLoyaltyStore,
    MemoryLoyaltyStore.name: MemoryLoyaltyStore,
}


def init_store(app: Flask) -> LoyaltyStore:
    """Instantiate the backend named by REDIMI_STORE_BACKEND and attach it to the app."""
    backend = (app.config.get("REDIMI_STORE_BACKEND") or "sql").strip().lower()
    store_cls = BACKENDS.get(backend)
    if store_cls is None:
        raise RuntimeError(
            f"Unknown REDIMI_STORE_BACKEND {backend!r}; expected one of {sorted(BACKENDS)}"
        )
    store = store_cls()
    app.extensions[EXTENSION_KEY] = store
    return store


def current_store() -> LoyaltyStore:
    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    "LoyaltyStore",
    "MemoryLoyaltyStore",
    "SqlLoyaltyStore",
    "init_store",
    "current_store",
]
