from __future__ import annotations

"""Service date keys in ``M/D/YY`` form."""

from datetime import date
import re

from service_planner.planner.errors import ServiceValidationError

_DATE_KEY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2})$")
CENTURY_PIVOT = 50


def parse_service_date(value: str) -> date:
    """Parse a ``M/D/YY`` key; years below 50 belong to the 2000s."""
    if not value:
        raise ServiceValidationError("Date is required")
    match = _DATE_KEY.match(value.strip())
    if match is None:
        raise ServiceValidationError(f"Invalid date '{value}', expected M/D/YY")
    month, day, short_year = (int(part) for part in match.groups())
    year = 2000 + short_year if short_year < CENTURY_PIVOT else 1900 + short_year
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ServiceValidationError(f"Invalid date '{value}': {exc}") from exc


def format_service_date(value: date) -> str:
    """Return the ``M/D/YY`` key for a calendar date (no zero padding)."""
    return f"{value.month}/{value.day}/{value.year % 100:02d}"


def document_id(date_key: str) -> str:
    """Return a Firestore-safe document id for a date key."""
    return date_key.strip().replace("/", "-")
