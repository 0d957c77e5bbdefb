# backend/supplychain/routes/system.py
"""
System health and version endpoints.

Public: no caller identity required.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..roles import ASSIGNABLE_ROLES
from ..services import command_service
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def _elapsed_ms(start: float) -> float:
    return round((time.time() - start) * 1000, 2)


def check_database_health() -> dict:
    """Round-trip to the database."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        return {"status": "healthy", "latency_ms": _elapsed_ms(start_time)}
    except Exception:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Database error"}


def check_registry_health() -> dict:
    """
    Role registry readiness.

    degraded: not initialized, or a workflow role is unassigned (the
    service answers reads but rejects the transitions that need it).
    """
    start_time = time.time()
    try:
        state = command_service.load_state()
    except Exception:
        current_app.logger.exception("Registry health check failed")
        db.session.rollback()
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Registry unavailable"}

    if state is None:
        return {
            "status": "degraded",
            "latency_ms": _elapsed_ms(start_time),
            "warning": "Role registry not initialized (run `flask ledger init`)",
        }

    details = {
        "products": state.product_count,
        "command_seq": state.command_seq,
    }
    missing = [role for role in ASSIGNABLE_ROLES if getattr(state, role) is None]
    if missing:
        return {
            "status": "degraded",
            "latency_ms": _elapsed_ms(start_time),
            "warning": f"Unassigned roles: {', '.join(missing)}",
            "details": details,
        }
    return {"status": "healthy", "latency_ms": _elapsed_ms(start_time), "details": details}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy, or degraded (still serving reads)
    - 503: database unreachable
    """
    checks = {
        "database": check_database_health(),
        "registry": check_registry_health(),
    }
    statuses = {c["status"] for c in checks.values()}
    if "unhealthy" in statuses:
        overall, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall, http_status = "degraded", 200
    else:
        overall, http_status = "healthy", 200

    return {
        "status": overall,
        "timestamp": to_utc_z(utcnow()),
        "checks": checks,
    }, http_status


@system_bp.get("/version")
def version():
    return {
        "name": "supplychain-ledger",
        "version": current_app.config.get("APP_VERSION", "0.1.0"),
        "environment": "development" if current_app.debug else "production",
    }
