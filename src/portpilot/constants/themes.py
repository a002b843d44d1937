"""Catalog of portfolio rendering themes and their plan requirements."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from portpilot.constants.enums import Plan


class ThemeId(StrEnum):
    SLEEK = "sleek"
    CARDGRID = "cardgrid"
    TERMINAL = "terminal"
    MAGAZINE = "magazine"


@dataclass(frozen=True, slots=True)
class Theme:
    """Display metadata for a theme.

    Attributes:
        id: Stable theme identifier stored on the portfolio.
        name: Human readable name.
        description: Short description shown in the theme picker.
        is_pro: Whether the theme requires the Pro plan.
    """

    id: ThemeId
    name: str
    description: str
    is_pro: bool

    def available_to(self, plan: Plan) -> bool:
        return not self.is_pro or plan is Plan.PRO


THEMES: tuple[Theme, ...] = (
    Theme(
        id=ThemeId.SLEEK,
        name="Sleek",
        description="Hero + grid cards with cover images and language badges",
        is_pro=False,
    ),
    Theme(
        id=ThemeId.CARDGRID,
        name="CardGrid",
        description="Pinterest-style masonry layout with hover details",
        is_pro=False,
    ),
    Theme(
        id=ThemeId.TERMINAL,
        name="Terminal",
        description="Monospace, command-prompt aesthetic with typing animation",
        is_pro=True,
    ),
    Theme(
        id=ThemeId.MAGAZINE,
        name="Magazine",
        description="Large image lead-ins with editorial excerpt sections",
        is_pro=True,
    ),
)

_THEMES_BY_ID = {theme.id: theme for theme in THEMES}


def get_theme(theme_id: str) -> Theme | None:
    """Return the theme with ``theme_id`` or None if it is unknown."""
    try:
        return _THEMES_BY_ID[ThemeId(theme_id)]
    except ValueError:
        return None
