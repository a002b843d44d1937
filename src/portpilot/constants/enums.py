"""Closed enumerations shared by models, services and API schemas."""

from __future__ import annotations

from enum import StrEnum


class Plan(StrEnum):
    """Billing tier of a user account."""

    FREE = "FREE"
    PRO = "PRO"

    @property
    def display_name(self) -> str:
        return "Pro" if self is Plan.PRO else "Free"


class Role(StrEnum):
    """Administrative role of a user account, lowest privilege first."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _ROLE_RANKS[self]

    def at_least(self, other: Role) -> bool:
        return self.rank >= other.rank


_ROLE_RANKS = {Role.USER: 0, Role.MODERATOR: 1, Role.ADMIN: 2}


class IntegrationProvider(StrEnum):
    """External source-control providers a user can connect."""

    GITHUB = "github"


class ProjectType(StrEnum):
    """Classification returned by repository analysis."""

    WEB_APP = "web-app"
    MOBILE_APP = "mobile-app"
    CLI_TOOL = "cli-tool"
    LIBRARY = "library"
    API = "api"
    DESKTOP_APP = "desktop-app"
    GAME = "game"
    OTHER = "other"

    @classmethod
    def parse(cls, value: object) -> ProjectType:
        """Map free-form model output onto a known project type."""
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.OTHER


class AdminActionType(StrEnum):
    """Kinds of audited admin mutations."""

    UPDATE_ROLE = "update_role"
    UPDATE_PLAN = "update_plan"
    SUSPEND_USER = "suspend_user"
    ACTIVATE_USER = "activate_user"
