"""Admin routes for user management and auditing."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path, Query

from portpilot.api.dependencies import AdminUser, to_http_exception
from portpilot.api.schemas.admin import (
    ActiveUpdateRequest,
    AdminActionResponse,
    PlanUpdateRequest,
    RoleUpdateRequest,
    StatisticsResponse,
    UserListResponse,
)
from portpilot.api.schemas.common import DEFAULT_LIMIT, MAX_LIMIT, PaginationMeta
from portpilot.api.schemas.users import UserResponse
from portpilot.constants.enums import Role
from portpilot.services import admin as admin_service
from portpilot.services.errors import PortPilotError

router = APIRouter(prefix="/admin", tags=["admin"])

UserId = Annotated[int, Path(ge=1, description="Target user identifier")]


@router.get("/users", response_model=UserListResponse, summary="List users")
def list_users(
    _admin: AdminUser,
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> UserListResponse:
    page = admin_service.list_users(limit=limit, offset=offset)
    return UserListResponse(
        items=[UserResponse.model_validate(item) for item in page["items"]],
        pagination=PaginationMeta(
            total=page["total"],
            limit=page["limit"],
            offset=page["offset"],
            has_more=page["has_more"],
        ),
    )


@router.get(
    "/users/role/{role}",
    response_model=list[UserResponse],
    summary="List users with a role",
)
def list_users_by_role(role: Role, _admin: AdminUser) -> list[UserResponse]:
    return [UserResponse.model_validate(u) for u in admin_service.list_users_by_role(role)]


@router.patch("/users/{user_id}/role", response_model=UserResponse, summary="Change a user's role")
def change_role(user_id: UserId, request: RoleUpdateRequest, admin: AdminUser) -> UserResponse:
    try:
        user = admin_service.update_user_role(admin.id, user_id, request.role)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return UserResponse.model_validate(user)


@router.patch("/users/{user_id}/plan", response_model=UserResponse, summary="Change a user's plan")
def change_plan(user_id: UserId, request: PlanUpdateRequest, admin: AdminUser) -> UserResponse:
    try:
        user = admin_service.update_user_plan(admin.id, user_id, request.plan)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return UserResponse.model_validate(user)


@router.patch(
    "/users/{user_id}/status",
    response_model=UserResponse,
    summary="Suspend or reactivate a user",
)
def change_status(
    user_id: UserId, request: ActiveUpdateRequest, admin: AdminUser
) -> UserResponse:
    try:
        user = admin_service.set_user_active(admin.id, user_id, request.is_active)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return UserResponse.model_validate(user)


@router.get("/statistics", response_model=StatisticsResponse, summary="Usage statistics")
def statistics(_admin: AdminUser) -> StatisticsResponse:
    return StatisticsResponse.model_validate(admin_service.get_statistics())


@router.get(
    "/actions",
    response_model=list[AdminActionResponse],
    summary="Audit log of admin actions",
)
def actions(
    _admin: AdminUser,
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[AdminActionResponse]:
    return [
        AdminActionResponse.model_validate(a)
        for a in admin_service.list_admin_actions(limit=limit, offset=offset)
    ]
