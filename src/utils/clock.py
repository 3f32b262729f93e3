"""Wall-clock helpers shared by the cache providers and the search service.

Expiry decisions take a ``Clock`` rather than calling ``datetime.now``
directly so tests can drive time forward deterministically.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)  # noqa: UP017


def as_utc(value: datetime) -> datetime:
    """Return *value* in UTC, treating naive datetimes as already UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)  # noqa: UP017
    return value.astimezone(timezone.utc)  # noqa: UP017
