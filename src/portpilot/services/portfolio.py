"""Portfolio and project management for the dashboard and the public page.

Every operation takes the caller's ``user_id`` explicitly and checks that the
referenced portfolio or project belongs to that user before changing
anything.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, TypedDict

from sqlalchemy.orm import Session

from portpilot.config import get_default_accent_color, get_default_theme
from portpilot.constants.enums import Plan
from portpilot.constants.themes import get_theme
from portpilot.data.db import get_session
from portpilot.data.models import Portfolio, Project, User
from portpilot.models.analysis import ProjectImage
from portpilot.services.errors import (
    AccessDeniedError,
    InvalidRequestError,
    NotFoundError,
    PlanRequiredError,
)
from portpilot.services.staleness import needs_reanalysis
from portpilot.utils.timestamps import utc_now

logger = logging.getLogger(__name__)

__all__ = [
    "ProjectDetailsData",
    "add_project_image",
    "ensure_portfolio",
    "get_dashboard",
    "get_or_create_portfolio",
    "get_owned_project",
    "get_portfolio_settings",
    "get_public_portfolio",
    "get_user",
    "mark_legacy_analyzed",
    "project_to_dict",
    "remove_project_image",
    "set_project_selection",
    "update_custom_domain",
    "update_portfolio_settings",
    "update_project_details",
    "update_project_order",
    "update_theme",
]

# Fields a user may edit directly on a project
_EDITABLE_PROJECT_FIELDS = (
    "name",
    "description",
    "summary",
    "detailed_description",
    "features",
)

_SOCIAL_KEYS = ("github", "x", "linkedin", "website")


class ProjectDetailsData(TypedDict, total=False):
    """TypedDict for user edits to a project."""

    name: str
    description: str | None
    summary: str | None
    detailed_description: str | None
    features: list[str]


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return user


def get_or_create_portfolio(session: Session, user: User) -> Portfolio:
    """Return the user's portfolio, creating a public default one if missing."""
    portfolio = session.query(Portfolio).filter(Portfolio.user_id == user.id).first()
    if portfolio is None:
        portfolio = Portfolio(
            user_id=user.id,
            theme_id=get_default_theme(),
            accent_color=get_default_accent_color(),
            is_public=True,
        )
        session.add(portfolio)
        session.flush()
        logger.info("Created portfolio %d for user %s", portfolio.id, user.handle)
    return portfolio


def ensure_portfolio(user_id: int) -> int:
    """Return the id of the user's portfolio, creating it if needed."""
    with get_session() as session:
        user = get_user(session, user_id)
        return get_or_create_portfolio(session, user).id


def _get_portfolio(session: Session, user_id: int) -> Portfolio:
    portfolio = session.query(Portfolio).filter(Portfolio.user_id == user_id).first()
    if portfolio is None:
        raise NotFoundError("Portfolio not found.")
    return portfolio


def get_owned_project(session: Session, user_id: int, project_id: int) -> Project:
    """Load a project and verify it belongs to the user's portfolio.

    Raises:
        NotFoundError: If the project does not exist.
        AccessDeniedError: If it belongs to someone else's portfolio.
    """
    project = session.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found.")
    portfolio = session.query(Portfolio).filter(Portfolio.user_id == user_id).first()
    if portfolio is None or project.portfolio_id != portfolio.id:
        raise AccessDeniedError("Access denied.")
    return project


def _ordered_projects(session: Session, portfolio_id: int) -> list[Project]:
    return (
        session.query(Project)
        .filter(Project.portfolio_id == portfolio_id)
        .order_by(Project.order, Project.id)
        .all()
    )


def _display_summary(project: Project) -> str:
    if project.summary:
        return project.summary
    if project.description:
        return project.description
    return f"A {project.primary_language or 'code'} project"


def project_to_dict(project: Project) -> dict[str, Any]:
    """Serialize a project for the dashboard, including its staleness."""
    return {
        "id": project.id,
        "portfolio_id": project.portfolio_id,
        "name": project.name,
        "description": project.description,
        "summary": project.summary,
        "display_summary": _display_summary(project),
        "detailed_description": project.detailed_description,
        "features": list(project.features or []),
        "images": list(project.images or []),
        "languages": dict(project.languages or {}),
        "language": project.primary_language,
        "topics": list(project.topics or []),
        "stars": project.stars,
        "forks": project.forks,
        "homepage": project.homepage,
        "repo_url": project.repo_url,
        "stack": project.stack,
        "last_updated": project.last_provider_update,
        "last_analyzed": project.last_analyzed_at,
        "analyzed": project.analyzed,
        "needs_reanalysis": needs_reanalysis(project),
        "selected": project.selected,
        "order": project.order,
    }


def _public_project_dict(project: Project) -> dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "summary": _display_summary(project),
        "detailed_description": project.detailed_description,
        "features": list(project.features or []),
        "images": list(project.images or []),
        "languages": dict(project.languages or {}),
        "topics": list(project.topics or []),
        "stars": project.stars,
        "forks": project.forks,
        "homepage": project.homepage,
        "repo_url": project.repo_url,
        "last_updated": project.last_provider_update,
        "stack": project.stack,
    }


def _portfolio_settings_dict(portfolio: Portfolio) -> dict[str, Any]:
    return {
        "id": portfolio.id,
        "theme_id": portfolio.theme_id,
        "accent_color": portfolio.accent_color,
        "is_public": portfolio.is_public,
        "custom_domain": portfolio.custom_domain,
        "show_stats": portfolio.show_stats,
        "social": dict(portfolio.social or {}),
    }


def get_dashboard(user_id: int) -> dict[str, Any]:
    """Return the user's dashboard: profile, aggregate stats and all projects."""
    with get_session() as session:
        user = get_user(session, user_id)
        portfolio = session.query(Portfolio).filter(Portfolio.user_id == user.id).first()
        projects = _ordered_projects(session, portfolio.id) if portfolio else []

        return {
            "user": {"name": user.name, "handle": user.handle, "plan": user.plan.value},
            "stats": {
                "total_projects": len(projects),
                "selected_projects": sum(1 for p in projects if p.selected),
                "total_stars": sum(p.stars or 0 for p in projects),
                "total_forks": sum(p.forks or 0 for p in projects),
                "stale_projects": sum(1 for p in projects if needs_reanalysis(p)),
                "plan_name": user.plan.display_name,
                "is_pro": user.plan is Plan.PRO,
            },
            "projects": [project_to_dict(p) for p in projects],
        }


def get_public_portfolio(handle: str) -> dict[str, Any]:
    """Return the render model of a public portfolio.

    Only projects with ``selected`` set are included; no other field affects
    visibility.

    Raises:
        NotFoundError: If the handle is unknown or the portfolio is not public.
    """
    with get_session() as session:
        user = session.query(User).filter(User.handle == handle).first()
        if user is None:
            raise NotFoundError("Portfolio not found.")
        portfolio = session.query(Portfolio).filter(Portfolio.user_id == user.id).first()
        if portfolio is None or not portfolio.is_public:
            raise NotFoundError("Portfolio not found or not public.")

        projects = [p for p in _ordered_projects(session, portfolio.id) if p.selected]
        return {
            "user": {
                "name": user.name,
                "handle": user.handle,
                "avatar_url": user.avatar_url,
                "bio": user.bio,
                "location": user.location,
                "website": user.website,
            },
            "projects": [_public_project_dict(p) for p in projects],
            "social": dict(portfolio.social or {}),
            "layout": {
                "theme_id": portfolio.theme_id,
                "accent_color": portfolio.accent_color,
                "show_stats": portfolio.show_stats,
            },
        }


def get_portfolio_settings(user_id: int) -> dict[str, Any]:
    with get_session() as session:
        return _portfolio_settings_dict(_get_portfolio(session, user_id))


def set_project_selection(user_id: int, project_id: int, selected: bool) -> dict[str, Any]:
    """Toggle whether a project appears on the public portfolio.

    Only ``selected`` is written; no reconciliation is triggered.
    """
    with get_session() as session:
        project = get_owned_project(session, user_id, project_id)
        project.selected = selected
        session.flush()
        return project_to_dict(project)


def update_project_order(user_id: int, orders: Sequence[tuple[int, int]]) -> None:
    """Apply ``(project_id, order)`` pairs atomically.

    Raises:
        NotFoundError / AccessDeniedError: If any project is missing or foreign;
            in that case no order is changed.
    """
    with get_session() as session:
        for project_id, order in orders:
            project = get_owned_project(session, user_id, project_id)
            project.order = order


def update_project_details(
    user_id: int, project_id: int, updates: ProjectDetailsData
) -> dict[str, Any]:
    """Apply user edits to a project's editable fields."""
    if "name" in updates and not (updates["name"] or "").strip():
        raise InvalidRequestError("Project name cannot be empty.")

    with get_session() as session:
        project = get_owned_project(session, user_id, project_id)
        for field in _EDITABLE_PROJECT_FIELDS:
            if field in updates:
                value = updates[field]
                if field == "features":
                    value = [str(item).strip() for item in value or [] if str(item).strip()]
                setattr(project, field, value)
        session.flush()
        return project_to_dict(project)


def add_project_image(user_id: int, project_id: int, image: ProjectImage) -> dict[str, Any]:
    """Append an already-stored image to the project's gallery."""
    if not image.url:
        raise InvalidRequestError("Image URL is required.")

    with get_session() as session:
        project = get_owned_project(session, user_id, project_id)
        # Reassign so the JSON column is flagged as modified.
        project.images = [*(project.images or []), image.to_dict()]
        session.flush()
        return project_to_dict(project)


def remove_project_image(user_id: int, project_id: int, index: int) -> dict[str, Any]:
    """Remove the image at ``index`` from the project's gallery."""
    with get_session() as session:
        project = get_owned_project(session, user_id, project_id)
        images = list(project.images or [])
        if index < 0 or index >= len(images):
            raise InvalidRequestError("Invalid image index.")
        del images[index]
        project.images = images
        session.flush()
        return project_to_dict(project)


def update_theme(
    user_id: int, theme_id: str, accent_color: str | None = None
) -> dict[str, Any]:
    """Switch the portfolio theme, enforcing Pro-only themes."""
    theme = get_theme(theme_id)
    if theme is None:
        raise InvalidRequestError(f"Unknown theme: {theme_id}")

    with get_session() as session:
        user = get_user(session, user_id)
        if not theme.available_to(user.plan):
            raise PlanRequiredError(f"The {theme.name} theme is only available for Pro users.")
        portfolio = _get_portfolio(session, user_id)
        portfolio.theme_id = theme.id.value
        if accent_color is not None:
            portfolio.accent_color = accent_color
        session.flush()
        return _portfolio_settings_dict(portfolio)


def update_portfolio_settings(
    user_id: int,
    *,
    is_public: bool | None = None,
    show_stats: bool | None = None,
    social: dict[str, str | None] | None = None,
) -> dict[str, Any]:
    """Update visibility, stats display and social links."""
    with get_session() as session:
        portfolio = _get_portfolio(session, user_id)
        if is_public is not None:
            portfolio.is_public = is_public
        if show_stats is not None:
            portfolio.show_stats = show_stats
        if social is not None:
            merged = dict(portfolio.social or {})
            for key in _SOCIAL_KEYS:
                if key in social:
                    if social[key]:
                        merged[key] = social[key]
                    else:
                        merged.pop(key, None)
            portfolio.social = merged
        session.flush()
        return _portfolio_settings_dict(portfolio)


def update_custom_domain(user_id: int, custom_domain: str | None) -> dict[str, Any]:
    """Set the portfolio's custom domain (Pro only)."""
    with get_session() as session:
        user = get_user(session, user_id)
        if user.plan is not Plan.PRO:
            raise PlanRequiredError("Custom domains are only available for Pro users.")
        portfolio = _get_portfolio(session, user_id)
        portfolio.custom_domain = (custom_domain or "").strip().lower() or None
        session.flush()
        return _portfolio_settings_dict(portfolio)


def mark_legacy_analyzed(user_id: int) -> int:
    """Flag projects that already carry AI content but predate the ``analyzed`` flag.

    Returns:
        Number of projects updated.
    """
    with get_session() as session:
        portfolio = _get_portfolio(session, user_id)
        updated = 0
        for project in _ordered_projects(session, portfolio.id):
            has_ai_content = bool(project.detailed_description or project.features)
            if has_ai_content and not project.analyzed:
                project.analyzed = True
                if project.last_analyzed_at is None:
                    project.last_analyzed_at = utc_now()
                updated += 1
        return updated
