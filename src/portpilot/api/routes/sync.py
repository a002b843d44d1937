"""Repository sync route."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from portpilot.api.dependencies import CurrentUser, to_http_exception
from portpilot.api.schemas.sync import SyncResponse
from portpilot.services.errors import IntegrationNotFoundError, PortPilotError
from portpilot.services.github_client import GitHubAPIError, GitHubAuthError
from portpilot.services.sync import sync_repositories

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sync"])


@router.post(
    "/sync",
    response_model=SyncResponse,
    summary="Sync repositories from GitHub",
    description=(
        "Fetch the caller's GitHub repositories and reconcile their portfolio: "
        "create new projects, refresh changed ones and remove deleted ones. "
        "AI-generated content and user choices are preserved."
    ),
)
def sync_portfolio(user: CurrentUser) -> SyncResponse:
    try:
        result = sync_repositories(user.id)
    except IntegrationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except GitHubAuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="GitHub rejected the stored token. Please re-authenticate.",
        ) from exc
    except GitHubAPIError as exc:
        logger.warning("GitHub sync failed for user %s: %s", user.handle, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not reach GitHub. Please try again later.",
        ) from exc
    except PortPilotError as exc:
        raise to_http_exception(exc) from exc

    return SyncResponse(
        success=True,
        message=result.message,
        synced_count=result.created,
        updated_count=result.updated,
        removed_count=result.removed,
        total_repos=result.total_fetched,
    )
