"""Timestamp helpers.

SQLite drops timezone information on ``DateTime(timezone=True)`` columns, so
values read back from the database may be naive. Every comparison between
provider and analysis timestamps goes through :func:`ensure_utc`.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime, treating naive values as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_iso_timestamp(raw: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp such as GitHub's ``2024-05-01T12:00:00Z``.

    Raises:
        ValueError: If ``raw`` is a non-empty string that is not ISO-8601.
    """
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(raw))
