# backend/redimi/routes/system.py
"""
System health and version endpoints.

Health reports each dependency separately so a deployment probe can tell a
database outage from a misconfigured store backend.
"""

import sys
import time
from flask import Blueprint, current_app

from ..extensions import db
from ..models import Vendor
from ..stores import EXTENSION_KEY
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__)

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    start_time = time.time()
    try:
        vendor_count = db.session.query(Vendor).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"vendors": vendor_count},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_store_health() -> dict:
    """The configured store backend is attached and answers a read."""
    start_time = time.time()
    store = current_app.extensions.get(EXTENSION_KEY)
    if store is None:
        return {"status": "unhealthy", "latency_ms": 0.0, "error": "Store not initialized"}
    try:
        vendor_count = len(store.list_vendors())
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"backend": store.name, "vendors": vendor_count},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Store error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: all checks healthy
    - 503: at least one check unhealthy
    """
    start_time = time.time()

    checks = {
        "database": check_database_health(),
        "store": check_store_health(),
    }
    unhealthy = any(c["status"] == "unhealthy" for c in checks.values())

    response = {
        "status": "unhealthy" if unhealthy else "healthy",
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }
    return response, 503 if unhealthy else 200


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info; never exposes keys or database URLs."""
    env = "production" if not current_app.debug else "development"
    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "store_backend": current_app.config.get("REDIMI_STORE_BACKEND"),
        "server_time": utcnow().isoformat() + "Z",
    }
