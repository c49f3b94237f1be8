"""Normalization helpers.

Centralizes defensive parsing of the loosely-typed feed values (numbers sent
as strings, booleans sent as ``"true"``/``"false"``, naive UTC timestamps).
"""

from __future__ import annotations

import math
import re
from datetime import UTC, datetime, timedelta
from typing import Any

_DURATION_RE = re.compile(r"^(?P<h>\d+):(?P<m>[0-5]?\d):(?P<s>[0-5]?\d(?:\.\d+)?)$")


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def safe_bool(value: Any) -> bool:
    """Interpret feed booleans; strings ``"true"``/``"1"`` count as true."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    if isinstance(value, (int, float)):
        return value != 0
    return False


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_utc(value: Any) -> datetime | None:
    """Parse an ISO-8601 feed timestamp; naive values are UTC.

    Returns ``None`` for anything that is not a parseable timestamp.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return ensure_utc(parsed)


def collection_values(value: Any) -> list[Any]:
    """Return the entries of a feed collection sent either as a list or as an index-keyed dict."""
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return list(value.values())
    return []


def parse_duration(text: str) -> timedelta:
    """Parse ``HH:MM:SS[.fff]`` into a timedelta."""
    match = _DURATION_RE.match(text.strip())
    if match is None:
        raise ValueError(f"Not a HH:MM:SS duration: {text!r}")
    return timedelta(
        hours=int(match.group("h")),
        minutes=int(match.group("m")),
        seconds=float(match.group("s")),
    )
