"""Project routes for the API."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, status

from portpilot.api.dependencies import CurrentUser, to_http_exception
from portpilot.api.schemas.projects import (
    AnalyzeResponse,
    ProjectImageModel,
    ProjectResponse,
    ProjectUpdateRequest,
)
from portpilot.models.analysis import ProjectImage
from portpilot.services.errors import PortPilotError
from portpilot.services.llm_providers import LLMConfigurationError
from portpilot.services.portfolio import (
    add_project_image,
    remove_project_image,
    update_project_details,
)
from portpilot.services.project_analyzer import analyze_project

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])

ProjectId = Annotated[int, Path(ge=1, description="Project identifier")]


@router.post(
    "/{project_id}/analyze",
    response_model=AnalyzeResponse,
    summary="Generate AI content for a project",
    description=(
        "Analyze the project's repository with the configured language model and store "
        "the summary, detailed description, features and tech stack. When the model "
        "call fails a deterministic summary is generated instead. Images are never "
        "changed."
    ),
)
def analyze(project_id: ProjectId, user: CurrentUser) -> AnalyzeResponse:
    try:
        outcome = analyze_project(user.id, project_id)
    except LLMConfigurationError as exc:
        logger.error("AI analysis unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI analysis is not configured.",
        ) from exc
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc

    return AnalyzeResponse(
        success=True,
        analysis=outcome["analysis"],
        project=outcome["project"],
        used_fallback=outcome["used_fallback"],
    )


@router.put(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Edit a project",
)
def update_project(
    project_id: ProjectId, request: ProjectUpdateRequest, user: CurrentUser
) -> ProjectResponse:
    """Apply user edits to the project's text fields."""
    updates = request.model_dump(exclude_unset=True)
    try:
        project = update_project_details(user.id, project_id, updates)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return ProjectResponse.model_validate(project)


@router.post(
    "/{project_id}/images",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach an image to a project",
)
def add_image(
    project_id: ProjectId, request: ProjectImageModel, user: CurrentUser
) -> ProjectResponse:
    try:
        project = add_project_image(
            user.id, project_id, ProjectImage(url=request.url, alt=request.alt)
        )
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return ProjectResponse.model_validate(project)


@router.delete(
    "/{project_id}/images/{index}",
    response_model=ProjectResponse,
    summary="Remove an image from a project",
)
def delete_image(
    project_id: ProjectId,
    index: Annotated[int, Path(ge=0)],
    user: CurrentUser,
) -> ProjectResponse:
    try:
        project = remove_project_image(user.id, project_id, index)
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc
    return ProjectResponse.model_validate(project)
