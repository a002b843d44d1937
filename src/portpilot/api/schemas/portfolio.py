"""Pydantic schemas for portfolio settings and the public portfolio page."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from portpilot.api.schemas.common import CamelModel
from portpilot.api.schemas.projects import ProjectImageModel

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class PortfolioSettingsResponse(CamelModel):
    id: int
    theme_id: str
    accent_color: str
    is_public: bool
    custom_domain: str | None
    show_stats: bool
    social: dict[str, str]


class ThemeUpdateRequest(CamelModel):
    theme_id: str
    accent_color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)


class ProjectOrderItem(CamelModel):
    project_id: int
    order: int = Field(ge=0)


class OrderUpdateRequest(CamelModel):
    projects: list[ProjectOrderItem]


class SocialLinks(CamelModel):
    github: str | None = None
    x: str | None = None
    linkedin: str | None = None
    website: str | None = None


class SettingsUpdateRequest(CamelModel):
    is_public: bool | None = None
    show_stats: bool | None = None
    social: SocialLinks | None = None


class CustomDomainRequest(CamelModel):
    custom_domain: str | None = None


class MigrateAnalyzedResponse(CamelModel):
    success: bool
    updated_count: int


class PublicUser(CamelModel):
    name: str | None
    handle: str
    avatar_url: str | None
    bio: str | None
    location: str | None
    website: str | None


class PublicProject(CamelModel):
    """Project as rendered on the public portfolio page."""

    id: int
    name: str
    description: str | None
    summary: str
    detailed_description: str | None
    features: list[str]
    images: list[ProjectImageModel]
    languages: dict[str, int]
    topics: list[str]
    stars: int
    forks: int
    homepage: str | None
    repo_url: str
    last_updated: datetime | None
    stack: dict[str, Any] | None


class PortfolioLayout(CamelModel):
    theme_id: str
    accent_color: str
    show_stats: bool


class PublicPortfolioResponse(CamelModel):
    user: PublicUser
    projects: list[PublicProject]
    social: dict[str, str]
    layout: PortfolioLayout


class ThemeResponse(CamelModel):
    id: str
    name: str
    description: str
    is_pro: bool
    available: bool
