"""Pydantic schemas for project API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field

from portpilot.api.schemas.common import CamelModel


class ProjectImageModel(CamelModel):
    url: str = Field(min_length=1)
    alt: str = ""


class ProjectResponse(CamelModel):
    """Project as shown on the owner's dashboard."""

    id: int
    portfolio_id: int
    name: str
    description: str | None
    summary: str | None
    display_summary: str
    detailed_description: str | None
    features: list[str]
    images: list[ProjectImageModel]
    languages: dict[str, int]
    language: str | None
    topics: list[str]
    stars: int
    forks: int
    homepage: str | None
    repo_url: str
    stack: dict[str, Any] | None
    last_updated: datetime | None
    last_analyzed: datetime | None
    analyzed: bool
    needs_reanalysis: bool
    selected: bool
    order: int


class SuggestedImageModel(CamelModel):
    type: str
    prompt: str


class AnalysisModel(CamelModel):
    """Content produced by analysing a repository."""

    summary: str
    detailed_description: str
    features: list[str]
    tech_stack: dict[str, Any]
    project_type: str
    suggested_images: list[SuggestedImageModel]
    key_insights: list[str]
    demo_url: str | None
    used_fallback: bool


class AnalyzeResponse(CamelModel):
    success: bool
    analysis: AnalysisModel
    project: ProjectResponse
    used_fallback: bool


class ProjectUpdateRequest(CamelModel):
    """Fields a user may edit on a project."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    description: str | None = None
    summary: str | None = None
    detailed_description: str | None = None
    features: list[str] | None = None


class ProjectSelectionRequest(CamelModel):
    project_id: int
    selected: bool
