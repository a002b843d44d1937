"""Portfolio routes: settings, ordering, selection and the public page."""

from __future__ import annotations

from fastapi import APIRouter

from portpilot.api.dependencies import CurrentUser, to_http_exception
from portpilot.api.schemas.portfolio import (
    CustomDomainRequest,
    MigrateAnalyzedResponse,
    OrderUpdateRequest,
    PortfolioSettingsResponse,
    PublicPortfolioResponse,
    SettingsUpdateRequest,
    ThemeUpdateRequest,
)
from portpilot.api.schemas.projects import ProjectResponse, ProjectSelectionRequest
from portpilot.services.errors import PortPilotError
from portpilot.services.portfolio import (
    ensure_portfolio,
    get_portfolio_settings,
    get_public_portfolio,
    mark_legacy_analyzed,
    set_project_selection,
    update_custom_domain,
    update_portfolio_settings,
    update_project_order,
    update_theme,
)

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get(
    "",
    response_model=PortfolioSettingsResponse,
    summary="Get the caller's portfolio settings",
)
def get_settings(user: CurrentUser) -> PortfolioSettingsResponse:
    """Return the caller's portfolio settings, creating a default portfolio if needed."""
    try:
        ensure_portfolio(user.id)
        settings = get_portfolio_settings(user.id)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return PortfolioSettingsResponse.model_validate(settings)


@router.post(
    "/projects/selection",
    response_model=ProjectResponse,
    summary="Show or hide a project on the public portfolio",
)
def select_project(request: ProjectSelectionRequest, user: CurrentUser) -> ProjectResponse:
    try:
        project = set_project_selection(user.id, request.project_id, request.selected)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return ProjectResponse.model_validate(project)


@router.post(
    "/theme",
    response_model=PortfolioSettingsResponse,
    summary="Change the portfolio theme",
    description="Pro-only themes are rejected with 403 for Free users.",
)
def change_theme(request: ThemeUpdateRequest, user: CurrentUser) -> PortfolioSettingsResponse:
    try:
        settings = update_theme(user.id, request.theme_id, request.accent_color)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return PortfolioSettingsResponse.model_validate(settings)


@router.post(
    "/order",
    summary="Reorder projects",
)
def change_order(request: OrderUpdateRequest, user: CurrentUser) -> dict[str, bool]:
    """Apply a new display order; nothing changes if any project is not the caller's."""
    try:
        update_project_order(user.id, [(item.project_id, item.order) for item in request.projects])
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return {"success": True}


@router.post(
    "/settings",
    response_model=PortfolioSettingsResponse,
    summary="Update visibility, stats display and social links",
)
def change_settings(
    request: SettingsUpdateRequest, user: CurrentUser
) -> PortfolioSettingsResponse:
    social = request.social.model_dump(exclude_unset=True) if request.social else None
    try:
        settings = update_portfolio_settings(
            user.id,
            is_public=request.is_public,
            show_stats=request.show_stats,
            social=social,
        )
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return PortfolioSettingsResponse.model_validate(settings)


@router.post(
    "/custom-domain",
    response_model=PortfolioSettingsResponse,
    summary="Set a custom domain (Pro only)",
)
def change_custom_domain(
    request: CustomDomainRequest, user: CurrentUser
) -> PortfolioSettingsResponse:
    try:
        settings = update_custom_domain(user.id, request.custom_domain)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return PortfolioSettingsResponse.model_validate(settings)


@router.post(
    "/migrate-analyzed",
    response_model=MigrateAnalyzedResponse,
    summary="Flag projects with existing AI content as analyzed",
)
def migrate_analyzed(user: CurrentUser) -> MigrateAnalyzedResponse:
    try:
        updated = mark_legacy_analyzed(user.id)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return MigrateAnalyzedResponse(success=True, updated_count=updated)


@router.get(
    "/{handle}",
    response_model=PublicPortfolioResponse,
    summary="Get a public portfolio",
    description="Only selected projects are included. 404 when the portfolio is not public.",
)
def get_public(handle: str) -> PublicPortfolioResponse:
    try:
        portfolio = get_public_portfolio(handle)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return PublicPortfolioResponse.model_validate(portfolio)
