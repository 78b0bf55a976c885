# backend/storefront/routes/system.py
"""
System health and version endpoints. Both are public.
"""

import sys
import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..models import Role
from ..permissions import DEFAULT_ROLES
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """Ping the database and confirm the built-in roles are seeded."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        role_count = db.session.query(Role).count()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latencyMs": round((time.time() - start_time) * 1000, 2),
            "error": "Database error",
        }

    elapsed_ms = (time.time() - start_time) * 1000
    status = "healthy" if role_count >= len(DEFAULT_ROLES) else "degraded"
    return {
        "status": status,
        "latencyMs": round(elapsed_ms, 2),
        "details": {"roles": role_count},
    }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable (status healthy, or degraded when roles are not seeded)
    - 503: database unreachable
    """
    database_health = check_database_health()
    http_status = 503 if database_health["status"] == "unhealthy" else 200
    return {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info. Never exposes keys or connection strings."""
    return {
        "apiVersion": "1.0.0",
        "environment": "development" if current_app.debug else "production",
        "pythonVersion": sys.version.split()[0],
        "serverTime": to_utc_z(utcnow()),
    }
