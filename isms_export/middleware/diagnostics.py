"""
Startup diagnostics: runs once when the Flask app starts.

Checks the report template and DynamoDB reachability and logs a summary
banner.
"""

import logging
import sys

from flask import Flask

from isms_export.integrations.record_gateway import RecordGateway
from isms_export.services.export_service import check_template

logger = logging.getLogger(__name__)


def run_startup_diagnostics(app: Flask, gateway: RecordGateway | None = None):
    """Run diagnostic checks during app startup."""
    if app.config.get("TESTING"):
        return  # skip during tests for speed

    issues: list[str] = []
    py = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"

    template = check_template(app.config["TEMPLATE_PATH"], app.config["SHEET_NAMES"])
    if template["status"] != "ok":
        issues.append(f"Template problem: {template['detail']} {template.get('missing', '')}".rstrip())

    gateway = gateway or RecordGateway.from_config(app.config)
    dynamo = gateway.ping()
    if dynamo["status"] != "ok":
        issues.append(f"DynamoDB unreachable: {dynamo['detail']}")

    banner = f"""
╔══════════════════════════════════════════════════════════════╗
║  ISMS Status Export — Startup Diagnostics                    ║
╠══════════════════════════════════════════════════════════════╣
║  Python      : {py:<46s}║
║  Debug       : {str(app.debug):<46s}║
║  AWS region  : {gateway.region:<46s}║
║  DynamoDB    : {dynamo['status']:<46s}║
║  Template    : {template['status']:<46s}║
╚══════════════════════════════════════════════════════════════╝"""
    logger.info(banner)

    if issues:
        logger.warning("Startup issues detected:")
        for issue in issues:
            logger.warning("  ⚠ %s", issue)
    else:
        logger.info("✅ All startup checks passed")
