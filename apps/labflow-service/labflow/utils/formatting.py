"""
Display helpers shared by the catalog screens.

Dates render in the short en-US form used across the UI ("Jan 5, 2024") and
free-text durations such as "30 minutes" or "2 hours" convert to minutes.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Iterable, Optional, Union

_MINUTES_PER_UNIT = {
    "minute": 1,
    "minutes": 1,
    "hour": 60,
    "hours": 60,
    "day": 60 * 24,
    "days": 60 * 24,
}

_LEADING_INT = re.compile(r"^[+-]?\d+")


def _coerce_date(value: Union[str, date, datetime]) -> date:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_date(value: Union[str, date, datetime]) -> str:
    """Return ``Mon D, YYYY`` for an ISO string, date or datetime."""
    d = _coerce_date(value)
    return f"{d:%b} {d.day}, {d.year}"


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def calculate_duration(time_string: Optional[str]) -> int:
    """Convert "30 minutes", "2 hours", "1 day" to minutes.

    Unknown units and malformed strings count as 0.
    """
    if not time_string:
        return 0
    parts = time_string.strip().split()
    if len(parts) < 2:
        return 0
    match = _LEADING_INT.match(parts[0])
    if not match:
        return 0
    return int(match.group(0)) * _MINUTES_PER_UNIT.get(parts[1].lower(), 0)


def total_duration(time_strings: Iterable[Optional[str]]) -> int:
    return sum(calculate_duration(t) for t in time_strings)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_duration(minutes: int) -> str:
    """Render minutes as e.g. "1 day 2 hours 5 minutes"."""
    if minutes <= 0:
        return "0 minutes"
    days, rest = divmod(minutes, 60 * 24)
    hours, mins = divmod(rest, 60)
    parts = []
    if days:
        parts.append(_plural(days, "day"))
    if hours:
        parts.append(_plural(hours, "hour"))
    if mins:
        parts.append(_plural(mins, "minute"))
    return " ".join(parts)
