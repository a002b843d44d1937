"""Pydantic schemas for the admin API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from portpilot.api.schemas.common import CamelModel, PaginationMeta
from portpilot.api.schemas.users import UserResponse
from portpilot.constants.enums import Plan, Role


class UserListResponse(CamelModel):
    items: list[UserResponse]
    pagination: PaginationMeta


class RoleUpdateRequest(CamelModel):
    role: Role


class PlanUpdateRequest(CamelModel):
    plan: Plan


class ActiveUpdateRequest(CamelModel):
    is_active: bool


class StatisticsResponse(CamelModel):
    """Aggregate counts for the admin statistics tab."""

    total_users: int
    active_users: int
    users_by_plan: dict[str, int]
    users_by_role: dict[str, int]
    total_portfolios: int
    public_portfolios: int
    total_projects: int
    analyzed_projects: int


class AdminActionResponse(CamelModel):
    id: int
    admin_id: int | None
    target_user_id: int | None
    action: str
    details: dict[str, Any]
    created_at: datetime
