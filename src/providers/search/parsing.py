"""Field coercion shared by the search provider adapters.

Upstream JSON is treated as untrusted: a missing or mistyped field falls
back to a default instead of failing the whole response.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def coerce_str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def coerce_int(value: Any) -> int:
    # bool is an int subclass; a boolean score is nonsense.
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value))
        except ValueError:
            return 0
    return 0


def epoch_to_datetime(value: Any) -> datetime | None:
    """Convert a Unix timestamp (seconds) to an aware UTC datetime, or None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)  # noqa: UP017
    except (OverflowError, OSError, ValueError):
        return None
