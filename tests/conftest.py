from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest

import portpilot.data.db as app_db
from portpilot.constants.enums import IntegrationProvider, Plan, Role
from portpilot.data.db import get_session, init_db
from portpilot.data.models import Integration, Portfolio, User
from portpilot.models.repository import RemoteRepository


@pytest.fixture
def api_db(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Use a temporary SQLite DB for API and service tests."""
    db_path = tmp_path / "api.db"
    monkeypatch.setenv("DB_URL", f"sqlite:///{db_path.as_posix()}")
    app_db._engine = None
    app_db._SessionLocal = None
    init_db()
    yield
    # Dispose engine to release connections
    if app_db._engine is not None:
        app_db._engine.dispose()
        app_db._engine = None
        app_db._SessionLocal = None


@pytest.fixture
def tmp_db(api_db: None) -> None:
    """Alias used by service-level tests."""


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Automatically add api_db fixture to tests in API test files."""
    for item in items:
        # Check if test file name contains "api" (case-insensitive)
        test_file_path = Path(str(item.fspath))
        if "api" in test_file_path.stem.lower():
            # Automatically add the api_db fixture using usefixtures marker
            item.add_marker(pytest.mark.usefixtures("api_db"))


def _create_user(
    handle: str,
    *,
    plan: Plan = Plan.FREE,
    role: Role = Role.USER,
    token: str | None = "gho_test_token",
    with_portfolio: bool = True,
) -> int:
    """Insert a user (optionally with a GitHub token and portfolio) and return its id."""
    with get_session() as session:
        user = User(handle=handle, name=handle.title(), plan=plan, role=role)
        session.add(user)
        session.flush()
        if token is not None:
            session.add(
                Integration(
                    user_id=user.id,
                    provider=IntegrationProvider.GITHUB,
                    access_token=token,
                )
            )
        if with_portfolio:
            session.add(
                Portfolio(
                    user_id=user.id, theme_id="sleek", accent_color="#3b82f6", is_public=True
                )
            )
        session.flush()
        return user.id


def _portfolio_id_for(user_id: int) -> int:
    with get_session() as session:
        return session.query(Portfolio).filter(Portfolio.user_id == user_id).one().id


def _make_repo(
    name: str,
    *,
    owner: str = "octocat",
    stars: int = 0,
    forks: int = 0,
    description: str | None = None,
    language: str | None = "Python",
    updated_at: datetime | None = None,
) -> RemoteRepository:
    """Build a repository snapshot row as the GitHub client would."""
    return RemoteRepository(
        repo_url=f"https://github.com/{owner}/{name}",
        repo_id=f"id-{name}",
        name=name,
        description=description,
        stars=stars,
        forks=forks,
        primary_language=language,
        updated_at=updated_at or datetime(2024, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def create_user(tmp_db: None):
    """Factory fixture inserting users into the temporary database."""
    return _create_user


@pytest.fixture
def portfolio_id_for(tmp_db: None):
    return _portfolio_id_for


@pytest.fixture
def make_repo():
    """Factory fixture for repository snapshot rows."""
    return _make_repo
