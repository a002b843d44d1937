"""User administration for the admin panel.

Every mutation writes an :class:`AdminAction` row in the same transaction as
the change it records.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from portpilot.constants.enums import AdminActionType, Plan, Role
from portpilot.data.db import get_session
from portpilot.data.models import AdminAction, Portfolio, Project, User
from portpilot.services.errors import AccessDeniedError, InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)

__all__ = [
    "ensure_can_administer",
    "get_statistics",
    "list_admin_actions",
    "list_users",
    "list_users_by_role",
    "set_user_active",
    "update_user_plan",
    "update_user_role",
    "user_to_dict",
]

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "handle": user.handle,
        "name": user.name,
        "email": user.email,
        "avatar_url": user.avatar_url,
        "plan": user.plan.value,
        "role": user.role.value,
        "is_active": user.is_active,
        "created_at": user.created_at,
    }


def _action_to_dict(action: AdminAction) -> dict[str, Any]:
    return {
        "id": action.id,
        "admin_id": action.admin_id,
        "target_user_id": action.target_user_id,
        "action": action.action,
        "details": dict(action.details or {}),
        "created_at": action.created_at,
    }


def _clamp(limit: int, offset: int) -> tuple[int, int]:
    return max(1, min(limit, MAX_LIMIT)), max(0, offset)


def _get_target(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return user


def _record(
    session: Session,
    admin_id: int,
    target: User,
    action: AdminActionType,
    details: dict[str, Any],
) -> None:
    session.add(
        AdminAction(
            admin_id=admin_id,
            target_user_id=target.id,
            action=action.value,
            details=details,
        )
    )
    logger.info("Admin %d: %s on user %s %s", admin_id, action.value, target.handle, details)


def list_users(limit: int = DEFAULT_LIMIT, offset: int = 0) -> dict[str, Any]:
    """Return a page of users, newest first, with the total count."""
    limit, offset = _clamp(limit, offset)
    with get_session() as session:
        total = session.query(func.count(User.id)).scalar() or 0
        users = (
            session.query(User)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return {
            "items": [user_to_dict(u) for u in users],
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(users) < total,
        }


def list_users_by_role(role: Role) -> list[dict[str, Any]]:
    with get_session() as session:
        users = session.query(User).filter(User.role == role).order_by(User.id).all()
        return [user_to_dict(u) for u in users]


def update_user_role(admin_id: int, user_id: int, role: Role) -> dict[str, Any]:
    """Change a user's role.

    Raises:
        NotFoundError: If the target user does not exist.
        InvalidRequestError: If an admin tries to lower their own role.
    """
    with get_session() as session:
        target = _get_target(session, user_id)
        if target.id == admin_id and not role.at_least(Role.ADMIN):
            raise InvalidRequestError("You cannot remove your own admin role.")
        previous = target.role
        target.role = role
        _record(
            session,
            admin_id,
            target,
            AdminActionType.UPDATE_ROLE,
            {"from": previous.value, "to": role.value},
        )
        session.flush()
        return user_to_dict(target)


def update_user_plan(admin_id: int, user_id: int, plan: Plan) -> dict[str, Any]:
    with get_session() as session:
        target = _get_target(session, user_id)
        previous = target.plan
        target.plan = plan
        _record(
            session,
            admin_id,
            target,
            AdminActionType.UPDATE_PLAN,
            {"from": previous.value, "to": plan.value},
        )
        session.flush()
        return user_to_dict(target)


def set_user_active(admin_id: int, user_id: int, is_active: bool) -> dict[str, Any]:
    """Suspend or reactivate an account.

    Raises:
        NotFoundError: If the target user does not exist.
        InvalidRequestError: If an admin tries to suspend themselves.
    """
    if admin_id == user_id and not is_active:
        raise InvalidRequestError("You cannot suspend your own account.")

    with get_session() as session:
        target = _get_target(session, user_id)
        target.is_active = is_active
        action = AdminActionType.ACTIVATE_USER if is_active else AdminActionType.SUSPEND_USER
        _record(session, admin_id, target, action, {"is_active": is_active})
        session.flush()
        return user_to_dict(target)


def get_statistics() -> dict[str, Any]:
    """Return user counts by plan and role plus portfolio and project totals."""
    with get_session() as session:
        by_plan = dict(session.query(User.plan, func.count(User.id)).group_by(User.plan).all())
        by_role = dict(session.query(User.role, func.count(User.id)).group_by(User.role).all())
        return {
            "total_users": sum(by_plan.values()),
            "active_users": session.query(func.count(User.id))
            .filter(User.is_active.is_(True))
            .scalar()
            or 0,
            "users_by_plan": {plan.value: by_plan.get(plan, 0) for plan in Plan},
            "users_by_role": {role.value: by_role.get(role, 0) for role in Role},
            "total_portfolios": session.query(func.count(Portfolio.id)).scalar() or 0,
            "public_portfolios": session.query(func.count(Portfolio.id))
            .filter(Portfolio.is_public.is_(True))
            .scalar()
            or 0,
            "total_projects": session.query(func.count(Project.id)).scalar() or 0,
            "analyzed_projects": session.query(func.count(Project.id))
            .filter(Project.analyzed.is_(True))
            .scalar()
            or 0,
        }


def list_admin_actions(limit: int = DEFAULT_LIMIT, offset: int = 0) -> list[dict[str, Any]]:
    """Return the audit log, most recent first."""
    limit, offset = _clamp(limit, offset)
    with get_session() as session:
        actions = (
            session.query(AdminAction)
            .order_by(AdminAction.created_at.desc(), AdminAction.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [_action_to_dict(a) for a in actions]


def ensure_can_administer(user: User) -> None:
    """Raise :class:`AccessDeniedError` unless ``user`` is an active admin."""
    if not user.is_active or not user.role.at_least(Role.ADMIN):
        raise AccessDeniedError("Admin access required.")
