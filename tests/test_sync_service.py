from __future__ import annotations

import gc
import threading

import httpx
import pytest

import portpilot.services.sync as sync_service
from portpilot.data.db import get_session
from portpilot.data.models import Portfolio, Project
from portpilot.services.errors import IntegrationNotFoundError, NotFoundError
from portpilot.services.github_client import GitHubAPIError, GitHubAuthError, GitHubClient
from portpilot.services.sync import portfolio_lock, sync_repositories


class FakeGitHubClient:
    """Stands in for GitHubClient; returns a fixed snapshot or raises."""

    def __init__(self, repos=None, error: Exception | None = None) -> None:
        self.repos = repos or []
        self.error = error
        self.tokens: list[str] = []

    def __call__(self, access_token: str) -> FakeGitHubClient:
        self.tokens.append(access_token)
        return self

    def list_repositories(self):
        if self.error is not None:
            raise self.error
        return list(self.repos)


def _project_names(user_id: int) -> set[str]:
    with get_session() as session:
        portfolio = session.query(Portfolio).filter(Portfolio.user_id == user_id).one()
        return {p.name for p in session.query(Project).filter_by(portfolio_id=portfolio.id)}


def test_sync_creates_projects_with_stored_token(create_user, make_repo):
    user_id = create_user("octocat", token="gho_secret")
    fake = FakeGitHubClient([make_repo("alpha"), make_repo("bravo")])

    result = sync_repositories(user_id, client_factory=fake)

    assert fake.tokens == ["gho_secret"]
    assert result.created == 2
    assert result.total_fetched == 2
    assert result.message == "Synced 2 new repositories"
    assert _project_names(user_id) == {"alpha", "bravo"}


def test_sync_creates_portfolio_on_first_run(create_user, make_repo):
    user_id = create_user("newbie", with_portfolio=False)

    sync_repositories(user_id, client_factory=FakeGitHubClient([make_repo("alpha")]))

    assert _project_names(user_id) == {"alpha"}


def test_sync_without_integration_fails(create_user):
    user_id = create_user("no-token", token=None)

    with pytest.raises(IntegrationNotFoundError, match="re-authenticate"):
        sync_repositories(user_id, client_factory=FakeGitHubClient())


def test_sync_unknown_user(tmp_db):
    with pytest.raises(NotFoundError):
        sync_repositories(404, client_factory=FakeGitHubClient())


@pytest.mark.parametrize(
    "error",
    [GitHubAuthError("bad token"), GitHubAPIError("unreachable", status_code=503)],
)
def test_failed_fetch_leaves_projects_untouched(create_user, make_repo, error):
    user_id = create_user("octocat")
    sync_repositories(user_id, client_factory=FakeGitHubClient([make_repo("alpha")]))

    with pytest.raises(type(error)):
        sync_repositories(user_id, client_factory=FakeGitHubClient(error=error))

    assert _project_names(user_id) == {"alpha"}


def test_portfolio_lock_is_shared_per_portfolio():
    lock = portfolio_lock(1)

    assert portfolio_lock(1) is lock
    assert portfolio_lock(2) is not lock


def test_portfolio_lock_is_released_when_unused():
    lock = portfolio_lock(31)
    assert 31 in sync_service._locks

    del lock
    gc.collect()

    assert 31 not in sync_service._locks


def test_concurrent_syncs_are_serialized(create_user, make_repo):
    user_id = create_user("octocat")
    active = 0
    overlaps = []
    guard = threading.Lock()

    class SlowClient(FakeGitHubClient):
        def list_repositories(self):
            nonlocal active
            with guard:
                active += 1
                overlaps.append(active)
            threading.Event().wait(0.05)
            with guard:
                active -= 1
            return [make_repo("alpha")]

    threads = [
        threading.Thread(
            target=sync_repositories,
            args=(user_id,),
            kwargs={"client_factory": SlowClient()},
        )
        for _ in range(3)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert max(overlaps) == 1
    assert _project_names(user_id) == {"alpha"}


@pytest.mark.parametrize(
    "broken_field",
    [{"updated_at": "garbage"}, {"stargazers_count": {"n": 1}}],
)
def test_unreadable_repository_row_does_not_delete_project(create_user, make_repo, broken_field):
    user_id = create_user("octocat")
    sync_repositories(user_id, client_factory=FakeGitHubClient([make_repo("alpha")]))
    with get_session() as session:
        session.query(Project).filter_by(name="alpha").one().summary = "Hand-written"

    row = {
        "id": 1,
        "name": "alpha",
        "html_url": "https://github.com/octocat/alpha",
        "stargazers_count": 0,
        "forks_count": 0,
        "updated_at": "2024-01-01T00:00:00Z",
    }
    row.update(broken_field)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[row])

    def client_factory(token: str) -> GitHubClient:
        return GitHubClient(
            token, base_url="https://api.github.test", transport=httpx.MockTransport(handler)
        )

    result = sync_repositories(user_id, client_factory=client_factory)

    assert (result.created, result.updated, result.removed, result.total_fetched) == (0, 0, 0, 1)
    with get_session() as session:
        project = session.query(Project).filter_by(name="alpha").one()
        assert project.summary == "Hand-written"
