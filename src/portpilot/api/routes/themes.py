"""Theme catalog route."""

from __future__ import annotations

from fastapi import APIRouter

from portpilot.api.dependencies import OptionalUser
from portpilot.api.schemas.portfolio import ThemeResponse
from portpilot.constants.enums import Plan
from portpilot.constants.themes import THEMES

router = APIRouter(tags=["themes"])


@router.get("/themes", response_model=list[ThemeResponse], summary="List portfolio themes")
def list_themes(user: OptionalUser) -> list[ThemeResponse]:
    """Return all themes, flagging which ones the caller's plan unlocks."""
    plan = user.plan if user is not None else Plan.FREE
    return [
        ThemeResponse(
            id=theme.id.value,
            name=theme.name,
            description=theme.description,
            is_pro=theme.is_pro,
            available=theme.available_to(plan),
        )
        for theme in THEMES
    ]
