"""
Startup validation of environment configuration.
"""

import logging
import os
import sys
from typing import Dict, List

logger = logging.getLogger(__name__)

REQUIRED_ENV = ["DATABASE_URL", "JWT_SECRET"]
RECOMMENDED_ENV = ["ALLOWED_ORIGINS", "LOG_LEVEL"]
MIN_JWT_SECRET_LENGTH = 32


def validate_env(exit_on_error: bool = True) -> Dict[str, List[str]]:
    """
    Check required and recommended environment variables.

    Missing required variables are fatal in production (ENV=production) and
    logged as errors elsewhere.

    Args:
        exit_on_error: Exit the process on fatal problems in production

    Returns:
        Dict with 'missing', 'missing_recommended', 'invalid' and 'warnings' lists
    """
    is_production = os.getenv("ENV", "").lower() == "production"
    missing = [key for key in REQUIRED_ENV if not os.getenv(key)]
    missing_recommended = [key for key in RECOMMENDED_ENV if not os.getenv(key)]
    warnings: List[str] = []
    invalid: List[str] = []

    if missing:
        logger.error(f"Missing required environment variables: {', '.join(missing)}")
    else:
        logger.info("All required environment variables are set")

    if missing_recommended:
        logger.warning(
            f"Recommended environment variables not set: {', '.join(missing_recommended)}"
        )

    jwt_secret = os.getenv("JWT_SECRET")
    if jwt_secret and len(jwt_secret) < MIN_JWT_SECRET_LENGTH:
        warnings.append("JWT_SECRET is shorter than 32 characters")
        logger.warning("JWT_SECRET is too short; use at least 32 characters")

    database_url = os.getenv("DATABASE_URL")
    if database_url and not database_url.startswith(("postgresql", "sqlite")):
        invalid.append("DATABASE_URL")
        logger.error("DATABASE_URL must be a PostgreSQL or SQLite connection string")

    if is_production and exit_on_error and (missing or invalid):
        logger.critical("Cannot start in production with invalid configuration")
        sys.exit(1)

    return {
        "missing": missing,
        "missing_recommended": missing_recommended,
        "invalid": invalid,
        "warnings": warnings,
    }
