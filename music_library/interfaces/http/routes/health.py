from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from music_library.database.db_manager import CURRENT_SCHEMA_VERSION, db, read_schema_version

health_bp = Blueprint("health_bp", __name__)


@health_bp.route("/healthz")
def healthz():
    status = 200
    checks = {}

    try:
        db.session.execute(text("SELECT 1"))
        version = read_schema_version()
        checks["database"] = "ok"
        checks["schema_version"] = version
        if version != CURRENT_SCHEMA_VERSION:
            status = 503
    except Exception as exc:  # pragma: no cover - DB failure path
        db.session.rollback()
        status = 503
        checks["database"] = f"error: {exc}"

    service = current_app.extensions.get("catalog_service")
    if service is not None and service.enrichment_client.base_url:
        checks["enrichment"] = "configured"
    else:
        checks["enrichment"] = "unconfigured"

    overall = "ok" if status == 200 else "degraded"
    return jsonify({"status": overall, "checks": checks}), status
