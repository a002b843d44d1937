"""Constants and enumerations."""

from portpilot.constants.enums import (
    AdminActionType,
    IntegrationProvider,
    Plan,
    ProjectType,
    Role,
)
from portpilot.constants.themes import THEMES, Theme, ThemeId, get_theme

__all__ = [
    "AdminActionType",
    "IntegrationProvider",
    "Plan",
    "ProjectType",
    "Role",
    "THEMES",
    "Theme",
    "ThemeId",
    "get_theme",
]
