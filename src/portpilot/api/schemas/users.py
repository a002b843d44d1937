"""Pydantic schemas for user accounts."""

from __future__ import annotations

from datetime import datetime

from portpilot.api.schemas.common import CamelModel
from portpilot.constants.enums import Plan, Role


class UserResponse(CamelModel):
    id: int
    handle: str
    name: str | None
    email: str | None
    avatar_url: str | None
    plan: Plan
    role: Role
    is_active: bool
    created_at: datetime
