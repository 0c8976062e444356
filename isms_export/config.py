"""
ISMS Status Export
Configuration classes for Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

_DEFAULT_TEMPLATE = os.path.join(basedir, "template", "PIM template.xlsx")

# Generate a random key for development; production MUST use a stable env var
_DEV_SECRET = secrets.token_hex(32)


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    # AWS / DynamoDB (credentials via the standard boto3 chain)
    AWS_REGION = os.getenv("AWS_REGION", "ap-northeast-2")
    POLICY_TABLE = os.getenv("POLICY_TABLE", "UserSelectedDocuments")
    EVIDENCE_TABLE = os.getenv("EVIDENCE_TABLE", "Evidence_Metadata")

    # Report template
    TEMPLATE_PATH = os.getenv("TEMPLATE_PATH", _DEFAULT_TEMPLATE)
    SHEET_NAMES = ("1.관리체계 수립 및 운영", "2.보호대책 요구사항")
    EXPORT_FILENAME = os.getenv("EXPORT_FILENAME", "ISMS_Status.xlsx")

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    PORT = int(os.getenv("PORT", "3333"))


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    # Tests point TEMPLATE_PATH at a generated workbook and inject a stub
    # DynamoDB client, so no AWS access is needed
    AWS_REGION = "ap-northeast-2"


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")  # Must be set explicitly in production

    def __init__(self):
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
