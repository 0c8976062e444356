"""
ISMS Status Export
Flask Application Factory.

Usage:
    from isms_export import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask
from flask_cors import CORS

from isms_export.config import config
from isms_export.integrations.record_gateway import RecordGateway
from isms_export.middleware.diagnostics import run_startup_diagnostics
from isms_export.middleware.logging_config import configure_logging
from isms_export.middleware.timing import init_request_timing
from isms_export.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # boto3 client is created lazily on first request
    gateway = RecordGateway.from_config(app.config)
    app.extensions["record_gateway"] = gateway

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Blueprints ───────────────────────────────────────────────────────
    from isms_export.blueprints.export_bp import export_bp
    from isms_export.blueprints.health_bp import health_bp

    app.register_blueprint(export_bp)
    app.register_blueprint(health_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("check-template")
    def check_template_cmd():
        """Verify the report template carries both target sheets."""
        from isms_export.services.export_service import check_template
        result = check_template(app.config["TEMPLATE_PATH"], app.config["SHEET_NAMES"])
        logger.info("Template %s: %s", app.config["TEMPLATE_PATH"], result)

    # ── Health check (legacy; detailed version at /health/live) ──
    @app.route("/api/v1/health")
    def health():
        return {"status": "ok", "app": "ISMS Status Export"}

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        from flask import request
        return api_error(E.NOT_FOUND, f"Not found: {request.path}", error="Not found")

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.METHOD_NOT_ALLOWED, "Method not allowed")

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, str(e), error="Internal server error")

    # ── Startup diagnostics ──────────────────────────────────────────────
    run_startup_diagnostics(app, gateway)

    return app
