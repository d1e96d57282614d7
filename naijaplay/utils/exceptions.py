"""
Domain exceptions raised by the service layer.

Every exception subclasses ValueError so callers that only care about
"the request was invalid" can keep catching ValueError. Each class carries
the HTTP status code the API layer answers with.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError

logger = logging.getLogger(__name__)


class NaijaPlayError(ValueError):
    """Base class for domain errors."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(NaijaPlayError):
    """A referenced row does not exist."""

    status_code = 404


class ConflictError(NaijaPlayError):
    """The operation clashes with the current state (e.g. already friends)."""

    status_code = 409


class UniqueViolationError(ConflictError):
    """A unique constraint would be violated."""


class ForeignKeyViolationError(ConflictError):
    """A foreign key points at a missing row."""


class InsufficientFundsError(NaijaPlayError):
    """The user cannot afford the operation."""

    status_code = 400


class AuthenticationError(NaijaPlayError):
    """Bad credentials or token."""

    status_code = 401


class PermissionDeniedError(NaijaPlayError):
    """The caller may not act on this resource."""

    status_code = 403


class DatabaseUnavailableError(NaijaPlayError):
    """The database could not be reached."""

    status_code = 503


# PostgreSQL SQLSTATE codes
_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


def _sqlstate(exc: Exception) -> Optional[str]:
    """Extract a SQLSTATE from the DBAPI error wrapped by SQLAlchemy."""
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if code:
            return code
    # asyncpg errors arrive wrapped in the adapter's exception
    cause = getattr(orig, "__cause__", None)
    return getattr(cause, "sqlstate", None)


def translate_integrity_error(
    exc: IntegrityError, message: Optional[str] = None
) -> NaijaPlayError:
    """
    Map a SQLAlchemy IntegrityError onto a domain error.

    Args:
        exc: The IntegrityError raised by flush/commit
        message: Optional user-facing message to use instead of the driver text

    Returns:
        UniqueViolationError, ForeignKeyViolationError, or ConflictError
    """
    code = _sqlstate(exc)
    text = str(getattr(exc, "orig", exc)).lower()

    if code == _UNIQUE_VIOLATION or "unique constraint" in text or "duplicate key" in text:
        return UniqueViolationError(message or "Record already exists")
    if code == _FOREIGN_KEY_VIOLATION or "foreign key constraint" in text:
        return ForeignKeyViolationError(message or "Referenced record does not exist")

    logger.warning(f"Unclassified integrity error: {text}")
    return ConflictError(message or "Database constraint violated")


def translate_database_error(exc: Exception) -> Optional[NaijaPlayError]:
    """
    Map a SQLAlchemy error onto a domain error.

    Returns None for errors that have no domain meaning; callers re-raise those.
    """
    if isinstance(exc, IntegrityError):
        return translate_integrity_error(exc)
    if isinstance(exc, (OperationalError, InterfaceError)):
        return DatabaseUnavailableError("Database is unavailable")
    return None
