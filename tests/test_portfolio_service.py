from __future__ import annotations

from datetime import UTC, datetime

import pytest

from portpilot.constants.enums import Plan
from portpilot.data.db import get_session
from portpilot.data.models import Portfolio, Project
from portpilot.models.analysis import ProjectImage
from portpilot.services.errors import (
    AccessDeniedError,
    InvalidRequestError,
    NotFoundError,
    PlanRequiredError,
)
from portpilot.services.portfolio import (
    add_project_image,
    ensure_portfolio,
    get_dashboard,
    get_portfolio_settings,
    get_public_portfolio,
    mark_legacy_analyzed,
    remove_project_image,
    set_project_selection,
    update_custom_domain,
    update_portfolio_settings,
    update_project_details,
    update_project_order,
    update_theme,
)
from portpilot.services.reconciliation import reconcile


@pytest.fixture
def seeded(create_user, portfolio_id_for, make_repo):
    """User 'octocat' with three synced projects; returns (user_id, {name: project_id})."""
    user_id = create_user("octocat")
    portfolio_id = portfolio_id_for(user_id)
    reconcile(
        portfolio_id,
        [
            make_repo("alpha", stars=5, forks=1, description="First"),
            make_repo("bravo", stars=2, language="Go"),
            make_repo("charlie", language=None),
        ],
    )
    with get_session() as session:
        projects = session.query(Project).filter_by(portfolio_id=portfolio_id).all()
        return user_id, {p.name: p.id for p in projects}


def _load(project_id: int) -> Project:
    with get_session() as session:
        return session.get(Project, project_id)


def test_ensure_portfolio_creates_defaults(create_user):
    user_id = create_user("fresh", with_portfolio=False)

    portfolio_id = ensure_portfolio(user_id)

    assert ensure_portfolio(user_id) == portfolio_id
    settings = get_portfolio_settings(user_id)
    assert settings["theme_id"] == "sleek"
    assert settings["accent_color"] == "#3b82f6"
    assert settings["is_public"] is True


def test_dashboard_stats(seeded):
    user_id, ids = seeded
    with get_session() as session:
        project = session.get(Project, ids["alpha"])
        project.analyzed = True
        project.last_analyzed_at = datetime(2023, 1, 1, tzinfo=UTC)

    dashboard = get_dashboard(user_id)

    stats = dashboard["stats"]
    assert stats["total_projects"] == 3
    assert stats["selected_projects"] == 3
    assert stats["total_stars"] == 7
    assert stats["total_forks"] == 1
    assert stats["stale_projects"] == 1
    assert stats["plan_name"] == "Free"
    assert stats["is_pro"] is False
    by_name = {p["name"]: p for p in dashboard["projects"]}
    assert by_name["alpha"]["needs_reanalysis"] is True
    assert by_name["bravo"]["needs_reanalysis"] is False


def test_display_summary_falls_back_without_ai_content(seeded):
    user_id, _ = seeded

    by_name = {p["name"]: p for p in get_dashboard(user_id)["projects"]}

    assert by_name["alpha"]["summary"] is None
    assert by_name["alpha"]["display_summary"] == "First"
    assert by_name["bravo"]["display_summary"] == "A Go project"
    assert by_name["charlie"]["display_summary"] == "A code project"


def test_selection_only_changes_selected(seeded):
    user_id, ids = seeded
    update_project_details(user_id, ids["alpha"], {"summary": "Curated"})
    update_project_order(user_id, [(ids["alpha"], 4)])

    set_project_selection(user_id, ids["alpha"], False)

    project = _load(ids["alpha"])
    assert project.selected is False
    assert project.order == 4
    assert project.summary == "Curated"


def test_public_portfolio_lists_only_selected_in_order(seeded):
    user_id, ids = seeded
    set_project_selection(user_id, ids["bravo"], False)
    update_project_order(user_id, [(ids["alpha"], 2), (ids["charlie"], 1)])

    public = get_public_portfolio("octocat")

    assert [p["name"] for p in public["projects"]] == ["charlie", "alpha"]
    assert public["layout"]["theme_id"] == "sleek"
    assert public["user"]["handle"] == "octocat"


def test_private_or_unknown_portfolio_is_not_found(seeded):
    user_id, _ = seeded
    update_portfolio_settings(user_id, is_public=False)

    with pytest.raises(NotFoundError):
        get_public_portfolio("octocat")
    with pytest.raises(NotFoundError):
        get_public_portfolio("nobody")


def test_order_update_is_all_or_nothing(seeded, create_user, portfolio_id_for, make_repo):
    user_id, ids = seeded
    other = create_user("other")
    reconcile(portfolio_id_for(other), [make_repo("foreign", owner="other")])
    with get_session() as session:
        foreign_id = session.query(Project.id).filter(Project.name == "foreign").scalar()

    with pytest.raises(AccessDeniedError):
        update_project_order(user_id, [(ids["alpha"], 9), (foreign_id, 1)])

    assert _load(ids["alpha"]).order == 0


def test_update_project_details(seeded):
    user_id, ids = seeded

    result = update_project_details(
        user_id,
        ids["bravo"],
        {"name": "Bravo CLI", "features": [" Fast ", "", "Small"]},
    )

    assert result["name"] == "Bravo CLI"
    assert result["features"] == ["Fast", "Small"]
    with pytest.raises(InvalidRequestError):
        update_project_details(user_id, ids["bravo"], {"name": "  "})


def test_project_images(seeded):
    user_id, ids = seeded
    add_project_image(user_id, ids["alpha"], ProjectImage(url="https://img/1.png", alt="one"))
    add_project_image(user_id, ids["alpha"], ProjectImage(url="https://img/2.png"))

    result = remove_project_image(user_id, ids["alpha"], 0)

    assert result["images"] == [{"url": "https://img/2.png", "alt": ""}]
    with pytest.raises(InvalidRequestError):
        remove_project_image(user_id, ids["alpha"], 5)
    with pytest.raises(InvalidRequestError):
        add_project_image(user_id, ids["alpha"], ProjectImage(url=""))


def test_foreign_project_is_denied(seeded, create_user):
    _, ids = seeded
    intruder = create_user("intruder")

    with pytest.raises(AccessDeniedError):
        set_project_selection(intruder, ids["alpha"], False)
    with pytest.raises(NotFoundError):
        set_project_selection(intruder, 4242, False)


def test_pro_theme_requires_pro_plan(create_user):
    free_user = create_user("free")
    pro_user = create_user("pro", plan=Plan.PRO)

    with pytest.raises(PlanRequiredError):
        update_theme(free_user, "terminal")
    assert update_theme(free_user, "cardgrid", "#ff0000")["accent_color"] == "#ff0000"
    assert update_theme(pro_user, "magazine")["theme_id"] == "magazine"
    with pytest.raises(InvalidRequestError):
        update_theme(pro_user, "neon")


def test_social_links_merge(create_user):
    user_id = create_user("social")
    update_portfolio_settings(user_id, social={"github": "octocat", "x": "octo"})

    settings = update_portfolio_settings(user_id, show_stats=False, social={"x": None})

    assert settings["social"] == {"github": "octocat"}
    assert settings["show_stats"] is False


def test_custom_domain_is_pro_only(create_user):
    free_user = create_user("free")
    pro_user = create_user("pro", plan=Plan.PRO)

    with pytest.raises(PlanRequiredError):
        update_custom_domain(free_user, "me.dev")
    assert update_custom_domain(pro_user, " Me.Dev ")["custom_domain"] == "me.dev"
    assert update_custom_domain(pro_user, "")["custom_domain"] is None


def test_mark_legacy_analyzed(seeded):
    user_id, ids = seeded
    with get_session() as session:
        session.get(Project, ids["alpha"]).features = ["Legacy feature"]

    assert mark_legacy_analyzed(user_id) == 1
    project = _load(ids["alpha"])
    assert project.analyzed is True
    assert project.last_analyzed_at is not None
    assert mark_legacy_analyzed(user_id) == 0


def test_portfolio_settings_require_portfolio(create_user):
    user_id = create_user("nofolio", with_portfolio=False)

    with pytest.raises(NotFoundError):
        get_portfolio_settings(user_id)
    with get_session() as session:
        assert session.query(Portfolio).count() == 0
