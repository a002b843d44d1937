"""Dashboard route."""

from __future__ import annotations

from fastapi import APIRouter

from portpilot.api.dependencies import CurrentUser, to_http_exception
from portpilot.api.schemas.dashboard import DashboardResponse
from portpilot.services.errors import PortPilotError
from portpilot.services.portfolio import get_dashboard

router = APIRouter(tags=["dashboard"])


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Get the caller's dashboard",
    description="Profile, aggregate stats and every project, including hidden ones.",
)
def dashboard(user: CurrentUser) -> DashboardResponse:
    try:
        data = get_dashboard(user.id)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return DashboardResponse.model_validate(data)
