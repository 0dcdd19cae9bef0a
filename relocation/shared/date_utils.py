"""Date helpers for PocketBase date fields."""

from __future__ import annotations

from datetime import date, datetime


def parse_date(value: str | date | None) -> date | None:
    """Parse a PocketBase date field into a date.

    Handles:
    - ISO date: "2024-06-15"
    - ISO datetime: "2024-06-15T10:30:00"
    - PocketBase datetime: "2024-06-15 10:30:00.123Z"

    Returns:
        Parsed date or None when empty or unparseable
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    formats = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]

    # Strip milliseconds and timezone indicator before parsing
    clean_str = value.split(".")[0].split("Z")[0]

    for fmt in formats:
        try:
            return datetime.strptime(clean_str, fmt).date()
        except ValueError:
            continue

    return None


def format_date(value: date | None) -> str:
    """Format a date the way PocketBase date fields store it (empty for None)."""
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d")
