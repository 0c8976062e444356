"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready   simple 200 for load balancers
    GET /api/v1/health/live    template + DynamoDB status
"""

import logging

from flask import Blueprint, current_app, jsonify

from isms_export.blueprints.export_bp import get_record_gateway
from isms_export.services.export_service import check_template

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe; always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Detailed liveness check with dependency status."""
    checks = {}

    checks["template"] = check_template(
        current_app.config["TEMPLATE_PATH"], current_app.config["SHEET_NAMES"],
    )
    if checks["template"]["status"] != "ok":
        logger.error("Health check template problem: %s", checks["template"]["detail"])

    checks["dynamodb"] = get_record_gateway().ping()
    if checks["dynamodb"]["status"] != "ok":
        logger.error("Health check: DynamoDB failed: %s", checks["dynamodb"]["detail"])

    checks["app"] = {
        "name": "ISMS Status Export",
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    overall = all(c["status"] == "ok" for c in (checks["template"], checks["dynamodb"]))
    return jsonify({
        "status": "healthy" if overall else "degraded",
        "checks": checks,
    }), 200 if overall else 503
