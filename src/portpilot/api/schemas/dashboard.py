"""Pydantic schemas for the owner's dashboard."""

from __future__ import annotations

from portpilot.api.schemas.common import CamelModel
from portpilot.api.schemas.projects import ProjectResponse


class DashboardUser(CamelModel):
    name: str | None
    handle: str
    plan: str


class DashboardStats(CamelModel):
    total_projects: int
    selected_projects: int
    total_stars: int
    total_forks: int
    stale_projects: int
    plan_name: str
    is_pro: bool


class DashboardResponse(CamelModel):
    user: DashboardUser
    stats: DashboardStats
    projects: list[ProjectResponse]
