"""Timestamp handling: filesystem nanoseconds and lax sidecar input -> strict UTC."""

from __future__ import annotations

from datetime import UTC, datetime

import pendulum

_NS_PER_SECOND = 1_000_000_000


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to a plain timezone-aware UTC ``datetime``.

    Naive values are taken to be UTC. Subclasses (pendulum) are rebuilt as
    stdlib datetimes so values compare and serialize uniformly.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return datetime(
        value.year,
        value.month,
        value.day,
        value.hour,
        value.minute,
        value.second,
        value.microsecond,
        tzinfo=UTC,
    )


def parse_datetime(value: str | datetime) -> datetime:
    """Parse a lax timestamp into a UTC datetime.

    Accepts:
    - 2026-02-02T22:21:29.975359Z
    - 2026-02-02 22:21:29.975359+00:00
    - 2026-02-02 22:21:29+00
    - 2026-02-02 22:21
    - 2026-02-02 (midnight)
    - datetime objects (naive ones are assumed UTC)

    Raises ValueError for anything pendulum cannot read as a date-time.
    """
    if isinstance(value, datetime):
        return to_utc(value)

    try:
        parsed = pendulum.parse(value.strip(), tz="UTC", strict=False)
    except ValueError as exc:
        msg = f"Invalid timestamp: {value!r}"
        raise ValueError(msg) from exc
    if not isinstance(parsed, pendulum.DateTime):
        # Durations and intervals are not points in time
        msg = f"Timestamp must include date and time: {value!r}"
        raise ValueError(msg)
    return to_utc(parsed)


def from_ns(mtime_ns: int) -> datetime:
    """Convert an ``st_mtime_ns`` value to a UTC datetime (microsecond resolution)."""
    seconds, remainder = divmod(mtime_ns, _NS_PER_SECOND)
    return datetime.fromtimestamp(seconds, tz=UTC).replace(microsecond=remainder // 1000)


def format_iso(dt: datetime) -> str:
    """Format a datetime as ISO 8601 UTC with microseconds and a ``Z`` suffix."""
    return to_utc(dt).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
