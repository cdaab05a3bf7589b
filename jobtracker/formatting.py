"""Display helpers for the command line."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse YYYY-MM-DD or ISO-8601 (trailing Z allowed) into an aware datetime."""
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: str) -> str:
    """'2024-01-05' -> 'Jan 5, 2024'. Unparseable input is returned as is."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return f"{MONTHS[parsed.month - 1]} {parsed.day}, {parsed.year}"


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit if n == 1 else unit + 's'} ago"


def format_relative_time(value: str, now: Optional[datetime] = None) -> str:
    """Coarse age of a timestamp, e.g. 'just now', '3 days ago'."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    now = now or datetime.now(timezone.utc)
    seconds = int((now - parsed).total_seconds())

    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return _plural(minutes, "minute")
    hours = minutes // 60
    if hours < 24:
        return _plural(hours, "hour")
    days = hours // 24
    if days < 30:
        return _plural(days, "day")
    months = days // 30
    if months < 12:
        return _plural(months, "month")
    return _plural(months // 12, "year")


def job_summary(job: Dict[str, Any]) -> str:
    """One line for list output."""
    return (
        f"[{job.get('status', '?'):<12}] {job.get('companyName', '')} - "
        f"{job.get('jobTitle', '')} (applied {format_date(job.get('appliedDate', ''))}) "
        f"id={job.get('id', '')}"
    )
