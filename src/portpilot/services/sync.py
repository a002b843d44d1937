"""Repository sync: fetch the user's repositories and reconcile the portfolio.

Syncs for the same portfolio are serialized within the process by a lock
keyed on the portfolio id. Separate worker processes are not coordinated.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Callable

from portpilot.constants.enums import IntegrationProvider
from portpilot.data.db import get_session
from portpilot.models.repository import SyncResult
from portpilot.services.github_client import GitHubClient
from portpilot.services.integrations import get_access_token
from portpilot.services.portfolio import get_or_create_portfolio, get_user
from portpilot.services.reconciliation import reconcile

logger = logging.getLogger(__name__)

__all__ = ["portfolio_lock", "sync_repositories"]

ClientFactory = Callable[[str], GitHubClient]

# Entries vanish once no sync holds or awaits the lock.
_locks: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def portfolio_lock(portfolio_id: int) -> threading.Lock:
    """Return the process-wide lock guarding syncs of ``portfolio_id``."""
    with _locks_guard:
        lock = _locks.get(portfolio_id)
        if lock is None:
            lock = _locks[portfolio_id] = threading.Lock()
        return lock


def sync_repositories(
    user_id: int,
    *,
    client_factory: ClientFactory = GitHubClient,
) -> SyncResult:
    """Fetch the user's GitHub repositories and reconcile their portfolio.

    The portfolio is created on first sync.

    Args:
        user_id: Caller whose portfolio is synced.
        client_factory: Builds a GitHub client from an access token.

    Raises:
        NotFoundError: If the user does not exist.
        IntegrationNotFoundError: If no GitHub token is stored for the user.
        GitHubAuthError: If GitHub rejects the stored token.
        GitHubAPIError: If GitHub cannot be reached or misbehaves. Nothing is
            reconciled in that case.
    """
    with get_session() as session:
        user = get_user(session, user_id)
        access_token = get_access_token(session, user.id, IntegrationProvider.GITHUB)
        portfolio_id = get_or_create_portfolio(session, user).id

    with portfolio_lock(portfolio_id):
        repos = client_factory(access_token).list_repositories()
        result = reconcile(portfolio_id, repos)

    logger.info(
        "Sync for portfolio %d: %d fetched, %d created, %d updated, %d removed",
        portfolio_id,
        result.total_fetched,
        result.created,
        result.updated,
        result.removed,
    )
    return result
