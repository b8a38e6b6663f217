"""
time.py - time utilities
Single responsibility: parse and format server timestamps.
"""
from datetime import datetime


def parse_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None


def format_datetime(iso_str: str | None) -> str:
    """ISO 8601 string to "DD/MM/YYYY HH:MM"; fallback to raw on error."""
    dt = parse_iso(iso_str)
    if dt is None:
        return iso_str or ""
    return dt.strftime("%d/%m/%Y %H:%M")

