"""Reconcile a fetched repository snapshot against a portfolio's stored projects.

Identity is the repository URL. Rows flagged ``malformed`` still count as
present, so their stored projects survive, but are otherwise skipped. The
removal pass runs to completion before the create/update pass. Each create,
update or delete commits in its own session, so a failure on one repository
only loses that repository's change and is not counted.

Sync only ever writes mirrored provider fields. Enrichment content, the
``selected`` flag and ``order`` are left untouched for existing projects.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from enum import StrEnum

from sqlalchemy.orm import Session

from portpilot.data.db import get_session
from portpilot.data.models import Portfolio, Project
from portpilot.models.repository import RemoteRepository, SyncResult
from portpilot.services.errors import NotFoundError
from portpilot.utils.timestamps import ensure_utc

logger = logging.getLogger(__name__)

__all__ = ["reconcile", "has_repository_changed"]

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class _Outcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


def _stored_identities(session: Session, portfolio_id: int) -> dict[str, int]:
    """Map repo_url -> project id for every stored project of the portfolio."""
    rows = (
        session.query(Project.repo_url, Project.id)
        .filter(Project.portfolio_id == portfolio_id)
        .all()
    )
    return {repo_url: project_id for repo_url, project_id in rows}


def has_repository_changed(project: Project, repo: RemoteRepository) -> bool:
    """Return True when the provider reports newer content or different metadata.

    A project that has never recorded a provider update time is compared
    against the Unix epoch.
    """
    stored_update = ensure_utc(project.last_provider_update) or _EPOCH
    fetched_update = ensure_utc(repo.updated_at)
    has_content_updates = fetched_update is not None and fetched_update > stored_update
    has_metadata_updates = (
        project.stars != repo.stars
        or project.forks != repo.forks
        or project.description != repo.description
    )
    return has_content_updates or has_metadata_updates


def _create_project(session: Session, portfolio_id: int, repo: RemoteRepository) -> None:
    project = Project(
        portfolio_id=portfolio_id,
        repo_id=repo.repo_id,
        name=repo.name,
        repo_url=repo.repo_url,
        homepage=repo.homepage,
        description=repo.description,
        stars=repo.stars,
        forks=repo.forks,
        languages=repo.languages,
        topics=list(repo.topics),
        last_provider_update=repo.updated_at,
        features=[],
        images=[],
        analyzed=False,
        selected=True,
    )
    session.add(project)


def _apply_mirrored_fields(project: Project, repo: RemoteRepository) -> None:
    project.repo_id = repo.repo_id
    project.name = repo.name
    project.description = repo.description
    project.homepage = repo.homepage
    project.stars = repo.stars
    project.forks = repo.forks
    # Keep the known language breakdown when the provider reports none.
    if repo.primary_language:
        project.languages = repo.languages
    project.topics = list(repo.topics)
    if repo.updated_at is not None:
        project.last_provider_update = repo.updated_at


def _reconcile_repository(
    session: Session,
    portfolio_id: int,
    repo: RemoteRepository,
    project_id: int | None,
) -> _Outcome:
    if project_id is None:
        _create_project(session, portfolio_id, repo)
        return _Outcome.CREATED

    project = session.get(Project, project_id)
    if project is None:
        # Deleted concurrently since the identity map was loaded.
        _create_project(session, portfolio_id, repo)
        return _Outcome.CREATED

    if not has_repository_changed(project, repo):
        return _Outcome.UNCHANGED

    stored_update = ensure_utc(project.last_provider_update)
    fetched_update = ensure_utc(repo.updated_at)
    if fetched_update is not None and (stored_update is None or fetched_update > stored_update):
        logger.info("Repository %s has new content and may need re-analysis", repo.name)

    _apply_mirrored_fields(project, repo)
    return _Outcome.UPDATED


def _remove_missing(portfolio_id: int, fetched_urls: set[str]) -> int:
    with get_session() as session:
        stored = _stored_identities(session, portfolio_id)

    removed = 0
    for repo_url, project_id in stored.items():
        if repo_url in fetched_urls:
            continue
        try:
            with get_session() as session:
                project = session.get(Project, project_id)
                if project is None:
                    continue
                name = project.name
                session.delete(project)
        except Exception:
            logger.exception("Failed to remove project %d (%s)", project_id, repo_url)
            continue
        removed += 1
        logger.info("Removed project %s (no longer exists on provider)", name)
    return removed


def reconcile(portfolio_id: int, fetched_repos: Sequence[RemoteRepository]) -> SyncResult:
    """Bring a portfolio's projects in line with a fetched repository snapshot.

    Args:
        portfolio_id: Portfolio whose projects are reconciled.
        fetched_repos: Complete repository list from the provider. Callers must
            only pass the result of a successful fetch; an empty sequence removes
            every project.

    Returns:
        SyncResult with created/updated/removed counts and the number fetched.

    Raises:
        NotFoundError: If the portfolio does not exist.
    """
    with get_session() as session:
        if session.get(Portfolio, portfolio_id) is None:
            raise NotFoundError(f"Portfolio {portfolio_id} not found.")

    result = SyncResult(total_fetched=len(fetched_repos))
    fetched_urls = {repo.repo_url for repo in fetched_repos}

    result.removed = _remove_missing(portfolio_id, fetched_urls)

    with get_session() as session:
        stored = _stored_identities(session, portfolio_id)

    seen: set[str] = set()
    for repo in fetched_repos:
        if repo.repo_url in seen:
            logger.warning("Duplicate repository %s in fetched snapshot; skipping", repo.repo_url)
            continue
        seen.add(repo.repo_url)
        if repo.malformed:
            logger.warning("Skipping unreadable repository %s; stored project kept", repo.repo_url)
            continue

        try:
            with get_session() as session:
                outcome = _reconcile_repository(
                    session, portfolio_id, repo, stored.get(repo.repo_url)
                )
        except Exception:
            logger.exception("Error syncing repository %s", repo.name)
            continue

        if outcome is _Outcome.CREATED:
            result.created += 1
        elif outcome is _Outcome.UPDATED:
            result.updated += 1

    return result
