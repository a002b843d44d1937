"""Utility functions and helpers"""

from portpilot.utils.timestamps import ensure_utc, parse_iso_timestamp, utc_now

__all__ = [
    "ensure_utc",
    "parse_iso_timestamp",
    "utc_now",
]
