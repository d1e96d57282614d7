"""
Tests for shared helpers: sanitizer, datetime utilities, error translation
and environment validation.
"""

from datetime import datetime

import pytest
import pytz
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from naijaplay.utils import env_validator
from naijaplay.utils.datetime_utils import (
    end_of_utc_day,
    ensure_utc,
    isoformat_or_none,
    start_of_utc_day,
)
from naijaplay.utils.exceptions import (
    ConflictError,
    DatabaseUnavailableError,
    ForeignKeyViolationError,
    NaijaPlayError,
    NotFoundError,
    UniqueViolationError,
    translate_database_error,
    translate_integrity_error,
)
from naijaplay.utils.sanitizer import sanitize_input


# ──────────────────────────────────────────────────────────────
# Sanitizer
# ──────────────────────────────────────────────────────────────


def test_sanitize_input():
    assert sanitize_input("<b>hi</b><script>alert(1)</script>") == "hi"
    assert sanitize_input("  plain  ") == "plain"
    assert sanitize_input("a\x00b") == "ab"
    assert sanitize_input("2 < 3") == "2 &lt; 3"
    assert sanitize_input(5) == 5


@pytest.mark.parametrize("raw", [
    "hi <img src=x onerror=alert(1)",
    "hi <a href=\"javascript:alert(1)\">",
    "hi <svg/onload=alert(1)>",
    "hi <<script>alert(1)//</script>",
])
def test_sanitize_input_drops_malformed_markup(raw):
    cleaned = sanitize_input(raw)
    assert cleaned.startswith("hi")
    assert "<" not in cleaned
    assert "onerror" not in cleaned
    assert "onload" not in cleaned
    assert "javascript:" not in cleaned


# ──────────────────────────────────────────────────────────────
# Datetimes
# ──────────────────────────────────────────────────────────────


def test_ensure_utc():
    naive = datetime(2026, 5, 1, 8, 30)
    assert ensure_utc(naive) == datetime(2026, 5, 1, 8, 30, tzinfo=pytz.UTC)
    lagos = pytz.timezone("Africa/Lagos").localize(datetime(2026, 5, 1, 9, 30))
    assert ensure_utc(lagos) == datetime(2026, 5, 1, 8, 30, tzinfo=pytz.UTC)
    assert ensure_utc(None) is None


def test_day_bounds():
    moment = datetime(2026, 5, 1, 23, 59, tzinfo=pytz.UTC)
    assert start_of_utc_day(moment) == datetime(2026, 5, 1, tzinfo=pytz.UTC)
    assert end_of_utc_day(moment) == datetime(2026, 5, 2, tzinfo=pytz.UTC)


def test_isoformat_or_none():
    assert isoformat_or_none(None) is None
    assert isoformat_or_none(datetime(2026, 5, 1)) == "2026-05-01T00:00:00+00:00"


# ──────────────────────────────────────────────────────────────
# Exceptions
# ──────────────────────────────────────────────────────────────


class _FakeDriverError(Exception):
    def __init__(self, message, sqlstate=None):
        super().__init__(message)
        self.sqlstate = sqlstate


def test_domain_errors_are_value_errors():
    err = NotFoundError("User not found", {"id": 1})
    assert isinstance(err, ValueError)
    assert isinstance(err, NaijaPlayError)
    assert err.status_code == 404
    assert err.message == "User not found"
    assert err.details == {"id": 1}
    assert UniqueViolationError("x").status_code == 409


def test_translate_integrity_error_by_sqlstate():
    unique = IntegrityError("INSERT", {}, _FakeDriverError("boom", sqlstate="23505"))
    fk = IntegrityError("INSERT", {}, _FakeDriverError("boom", sqlstate="23503"))
    other = IntegrityError("INSERT", {}, _FakeDriverError("check failed"))

    assert isinstance(translate_integrity_error(unique, "taken"), UniqueViolationError)
    assert translate_integrity_error(unique, "taken").message == "taken"
    assert isinstance(translate_integrity_error(fk), ForeignKeyViolationError)
    translated = translate_integrity_error(other)
    assert type(translated) is ConflictError


def test_translate_integrity_error_by_message():
    sqlite_unique = IntegrityError(
        "INSERT", {}, _FakeDriverError("UNIQUE constraint failed: users.username")
    )
    assert isinstance(translate_integrity_error(sqlite_unique), UniqueViolationError)


def test_translate_database_error():
    assert isinstance(
        translate_database_error(OperationalError("SELECT 1", {}, Exception("down"))),
        DatabaseUnavailableError,
    )
    assert translate_database_error(ProgrammingError("SELECT", {}, Exception("typo"))) is None
    assert translate_database_error(RuntimeError("nope")) is None


# ──────────────────────────────────────────────────────────────
# Environment validation
# ──────────────────────────────────────────────────────────────


def test_validate_env_reports_missing(monkeypatch):
    monkeypatch.setenv("ENV", "development")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("JWT_SECRET", "short")

    report = env_validator.validate_env()
    assert report["missing"] == ["DATABASE_URL"]
    assert report["warnings"] == ["JWT_SECRET is shorter than 32 characters"]


def test_validate_env_rejects_unknown_scheme(monkeypatch):
    monkeypatch.setenv("ENV", "development")
    monkeypatch.setenv("DATABASE_URL", "mysql://localhost/naija")
    monkeypatch.setenv("JWT_SECRET", "x" * 40)

    report = env_validator.validate_env()
    assert report["invalid"] == ["DATABASE_URL"]
    assert report["missing"] == []


def test_validate_env_exits_in_production(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("JWT_SECRET", "x" * 40)

    with pytest.raises(SystemExit):
        env_validator.validate_env()
    # Reporting mode never exits
    assert env_validator.validate_env(exit_on_error=False)["missing"] == ["DATABASE_URL"]
