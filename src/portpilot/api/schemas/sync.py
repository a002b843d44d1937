"""Pydantic schemas for repository sync."""

from __future__ import annotations

from portpilot.api.schemas.common import CamelModel


class SyncResponse(CamelModel):
    """Counts from one sync run."""

    success: bool
    message: str
    synced_count: int
    updated_count: int
    removed_count: int
    total_repos: int
