"""
Jinja2 template filters.

Keeps filter logic out of the app factory so it can be unit-tested easily.
"""

from __future__ import annotations
from datetime import date, datetime, timezone


def _to_datetime(value):
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"Unsupported value: {value!r}")


def relative_time(value, now=None):
    """Convert a timestamp to 'just now', '3 hours ago', 'yesterday', '4 days ago' or a date."""
    if not value:
        return "Unknown"

    try:
        moment = _to_datetime(value)
    except (ValueError, TypeError):
        return value[:10] if isinstance(value, str) and len(value) >= 10 else str(value)

    now = now or datetime.now(timezone.utc)
    seconds = (now - moment).total_seconds()

    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        minutes = int(seconds // 60)
        return "1 minute ago" if minutes == 1 else f"{minutes} minutes ago"
    if seconds < 86400:
        hours = int(seconds // 3600)
        return "1 hour ago" if hours == 1 else f"{hours} hours ago"

    days = (now.date() - moment.date()).days
    if days <= 1:
        return "Yesterday"
    elif days < 7:
        return f"{days} days ago"
    return moment.strftime("%b %d, %Y")


def format_date(value, fmt: str = "%b %d, %Y"):
    """Format a date/ISO string for display; returns '' for missing values."""
    if not value:
        return ""
    try:
        return _to_datetime(value).strftime(fmt)
    except (ValueError, TypeError):
        return str(value)


def progress_width(value) -> float:
    """Progress bar width clamped to 0..100 (the percentage itself is not)."""
    try:
        pct = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(pct, 100.0))
