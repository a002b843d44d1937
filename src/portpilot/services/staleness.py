"""Read-time staleness check for analysed projects."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from portpilot.utils.timestamps import ensure_utc


class _AnalysisTimestamps(Protocol):
    analyzed: bool
    last_analyzed_at: datetime | None
    last_provider_update: datetime | None


def needs_reanalysis(project: _AnalysisTimestamps) -> bool:
    """Return True when the repository changed after the last successful analysis.

    Never-analysed projects are not stale. The result is derived from the two
    timestamps on every call and is never stored.
    """
    if not project.analyzed:
        return False
    analyzed_at = ensure_utc(project.last_analyzed_at)
    if analyzed_at is None:
        return False
    provider_update = ensure_utc(project.last_provider_update)
    if provider_update is None:
        return False
    return provider_update > analyzed_at
