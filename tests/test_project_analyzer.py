from __future__ import annotations

import base64
import json
from datetime import UTC, datetime, timedelta

import httpx
import openai
import pytest

from portpilot.data.db import get_session
from portpilot.data.models import Project
from portpilot.services.errors import (
    AccessDeniedError,
    IntegrationNotFoundError,
    InvalidRequestError,
    NotFoundError,
)
from portpilot.services.github_client import GitHubClient
from portpilot.services.llm_providers import LLMConfigurationError, LLMError, LLMProvider
from portpilot.services.llm_service import LLMService
from portpilot.services.project_analyzer import (
    CodeStructure,
    analyze_project,
    build_fallback_analysis,
    detect_frameworks,
    parse_analysis_response,
)
from portpilot.services.reconciliation import reconcile
from portpilot.services.staleness import needs_reanalysis

ANALYSIS_JSON = {
    "summary": "Alpha turns notes into flashcards.",
    "detailedDescription": "Overview.\n\nImplementation.",
    "features": ["Spaced repetition", "Markdown import", "Offline mode", "CLI export"],
    "techStack": {"framework": "Flask", "runtime": "Python", "packageManager": "pip"},
    "projectType": "web-app",
    "suggestedImages": [{"type": "dashboard", "prompt": "Deck overview"}],
    "keyInsights": ["Small dependency footprint"],
    "demoUrl": None,
}


class MockProvider(LLMProvider):
    """Mock provider returning a canned response or raising."""

    def __init__(self, response: str | None = None, error: Exception | None = None) -> None:
        self.response = response if response is not None else json.dumps(ANALYSIS_JSON)
        self.error = error
        self.last_prompt: str | None = None

    def send_prompt(self, prompt: str, config: dict) -> str:
        self.last_prompt = prompt
        if self.error is not None:
            raise self.error
        return self.response


def _encoded(text: str) -> dict:
    return {"content": base64.b64encode(text.encode()).decode(), "encoding": "base64"}


def _github_handler(request: httpx.Request) -> httpx.Response:
    routes = {
        "/repos/octocat/alpha": {
            "name": "alpha",
            "description": "Flashcards",
            "stargazers_count": 3,
            "forks_count": 1,
            "homepage": "https://alpha.example",
        },
        "/repos/octocat/alpha/languages": {"Python": 900, "HTML": 100},
        "/repos/octocat/alpha/git/trees/HEAD": {
            "tree": [
                {"path": "app.py", "type": "blob"},
                {"path": "requirements.txt", "type": "blob"},
                {"path": "Dockerfile", "type": "blob"},
                {"path": "tests/test_app.py", "type": "blob"},
            ]
        },
        "/repos/octocat/alpha/contents/README.md": _encoded("# Alpha\nFlashcards from notes."),
        "/repos/octocat/alpha/contents/requirements.txt": _encoded("flask\n"),
    }
    payload = routes.get(request.url.path)
    if payload is None:
        return httpx.Response(404, json={"message": "Not Found"})
    return httpx.Response(200, json=payload)


def _client_factory(token: str, handler=_github_handler) -> GitHubClient:
    return GitHubClient(
        token,
        base_url="https://api.github.test",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def owned_project(create_user, portfolio_id_for, make_repo):
    """A synced project with a user-uploaded image; returns (user_id, project_id)."""
    user_id = create_user("octocat")
    portfolio_id = portfolio_id_for(user_id)
    reconcile(
        portfolio_id,
        [make_repo("alpha", stars=3, updated_at=datetime(2024, 1, 1, tzinfo=UTC))],
    )
    with get_session() as session:
        project = session.query(Project).filter_by(portfolio_id=portfolio_id).one()
        project.images = [{"url": "https://img.example/a.png", "alt": "screenshot"}]
        return user_id, project.id


def _load(project_id: int) -> Project:
    with get_session() as session:
        return session.get(Project, project_id)


def test_analyze_project_stores_enrichment(owned_project):
    user_id, project_id = owned_project
    provider = MockProvider()

    outcome = analyze_project(
        user_id,
        project_id,
        llm_service=LLMService(provider=provider),
        client_factory=_client_factory,
    )

    assert outcome["used_fallback"] is False
    assert outcome["analysis"]["demo_url"] == "https://alpha.example"
    assert outcome["analysis"]["tech_stack"]["docker"] is True
    assert "Flask/Django" in provider.last_prompt
    assert "Flashcards from notes." in provider.last_prompt

    project = _load(project_id)
    assert project.summary == ANALYSIS_JSON["summary"]
    assert project.detailed_description == ANALYSIS_JSON["detailedDescription"]
    assert project.features == ANALYSIS_JSON["features"]
    assert project.stack["package_manager"] == "pip"
    assert project.analyzed is True
    assert project.last_analyzed_at is not None
    assert project.images == [{"url": "https://img.example/a.png", "alt": "screenshot"}]


def test_analyze_project_falls_back_when_llm_fails(owned_project):
    user_id, project_id = owned_project
    provider = MockProvider(error=LLMError("quota exceeded"))

    outcome = analyze_project(
        user_id,
        project_id,
        llm_service=LLMService(provider=provider),
        client_factory=_client_factory,
    )

    assert outcome["used_fallback"] is True
    project = _load(project_id)
    assert project.summary
    assert len(project.features) >= 1
    assert project.analyzed is True
    assert project.images == [{"url": "https://img.example/a.png", "alt": "screenshot"}]


def test_analyze_project_falls_back_on_unparseable_reply(owned_project):
    user_id, project_id = owned_project

    outcome = analyze_project(
        user_id,
        project_id,
        llm_service=LLMService(provider=MockProvider(response="Sorry, I can't help.")),
        client_factory=_client_factory,
    )

    assert outcome["used_fallback"] is True
    assert _load(project_id).analyzed is True


def test_analyze_project_tolerates_oddly_shaped_reply(owned_project):
    user_id, project_id = owned_project
    reply = json.dumps({"summary": "Alpha in one line.", "suggestedImages": 5, "features": "x"})

    outcome = analyze_project(
        user_id,
        project_id,
        llm_service=LLMService(provider=MockProvider(response=reply)),
        client_factory=_client_factory,
    )

    assert outcome["used_fallback"] is False
    assert outcome["analysis"]["suggested_images"] == []
    assert outcome["analysis"]["features"] == []
    assert _load(project_id).summary == "Alpha in one line."


@pytest.mark.parametrize(
    "metadata",
    [["not", "an", "object"], {"name": "alpha", "stargazers_count": "lots"}],
)
def test_analyze_project_survives_odd_repository_metadata(owned_project, metadata):
    user_id, project_id = owned_project

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/repos/octocat/alpha":
            return httpx.Response(200, json=metadata)
        return _github_handler(request)

    provider = MockProvider()
    outcome = analyze_project(
        user_id,
        project_id,
        llm_service=LLMService(provider=provider),
        client_factory=lambda token: _client_factory(token, handler),
    )

    assert outcome["used_fallback"] is False
    assert "Flashcards from notes." in provider.last_prompt
    assert _load(project_id).analyzed is True


def test_analyze_project_falls_back_on_malformed_openai_key(owned_project, monkeypatch):
    user_id, project_id = owned_project
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "not-a-key")
    monkeypatch.setattr(openai, "OpenAI", lambda **kwargs: object(), raising=True)

    outcome = analyze_project(user_id, project_id, client_factory=_client_factory)

    assert outcome["used_fallback"] is True
    assert _load(project_id).analyzed is True


def test_analyze_project_requires_llm_configuration(owned_project, monkeypatch):
    user_id, project_id = owned_project
    monkeypatch.setenv("LLM_PROVIDER", "gemini")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    with pytest.raises(LLMConfigurationError):
        analyze_project(user_id, project_id, client_factory=_client_factory)

    project = _load(project_id)
    assert project.analyzed is False
    assert project.summary is None


def test_analyze_project_requires_github_integration(create_user, portfolio_id_for, make_repo):
    user_id = create_user("tokenless", token=None)
    reconcile(portfolio_id_for(user_id), [make_repo("alpha")])
    with get_session() as session:
        project_id = session.query(Project.id).scalar()

    with pytest.raises(IntegrationNotFoundError):
        analyze_project(
            user_id,
            project_id,
            llm_service=LLMService(provider=MockProvider()),
            client_factory=_client_factory,
        )


def test_analyze_project_rejects_non_github_url(owned_project):
    user_id, project_id = owned_project
    with get_session() as session:
        session.get(Project, project_id).repo_url = "https://example.com/not-a-repo"

    with pytest.raises(InvalidRequestError):
        analyze_project(
            user_id,
            project_id,
            llm_service=LLMService(provider=MockProvider()),
            client_factory=_client_factory,
        )


def test_analyze_project_checks_ownership(owned_project, create_user):
    _, project_id = owned_project
    intruder = create_user("intruder")
    service = LLMService(provider=MockProvider())

    with pytest.raises(AccessDeniedError):
        analyze_project(intruder, project_id, llm_service=service, client_factory=_client_factory)
    with pytest.raises(NotFoundError):
        analyze_project(intruder, 9999, llm_service=service, client_factory=_client_factory)

    assert _load(project_id).analyzed is False


def test_staleness_clears_after_analysis_and_returns_after_newer_sync(
    owned_project, portfolio_id_for, make_repo
):
    user_id, project_id = owned_project
    analyze_project(
        user_id,
        project_id,
        llm_service=LLMService(provider=MockProvider()),
        client_factory=_client_factory,
    )
    assert needs_reanalysis(_load(project_id)) is False

    # Same snapshot again: nothing changes.
    portfolio_id = portfolio_id_for(user_id)
    reconcile(
        portfolio_id,
        [make_repo("alpha", stars=3, updated_at=datetime(2024, 1, 1, tzinfo=UTC))],
    )
    assert needs_reanalysis(_load(project_id)) is False

    later = datetime.now(UTC) + timedelta(minutes=5)
    reconcile(portfolio_id, [make_repo("alpha", stars=3, updated_at=later)])
    assert needs_reanalysis(_load(project_id)) is True


def test_parse_analysis_response_accepts_fenced_json():
    text = "Here you go:\n```json\n" + json.dumps(ANALYSIS_JSON) + "\n```"

    result = parse_analysis_response(text, homepage=None)

    assert result.summary == ANALYSIS_JSON["summary"]
    assert result.features == ANALYSIS_JSON["features"]
    assert result.project_type.value == "web-app"
    assert result.tech_stack.framework == "Flask"
    assert result.suggested_images[0].prompt == "Deck overview"
    assert result.used_fallback is False


def test_parse_analysis_response_ignores_non_list_suggested_images():
    data = dict(ANALYSIS_JSON, suggestedImages=5, keyInsights={"a": 1})

    result = parse_analysis_response(json.dumps(data))

    assert result.suggested_images == []
    assert result.key_insights == []
    assert result.summary == ANALYSIS_JSON["summary"]


def test_parse_analysis_response_caps_features_and_normalizes_type():
    data = dict(ANALYSIS_JSON, features=[f"f{i}" for i in range(10)], projectType="CLI Tool")

    result = parse_analysis_response(json.dumps(data))

    assert len(result.features) == 6
    assert result.project_type.value == "cli-tool"


@pytest.mark.parametrize("text", ["", "no json here", "[1, 2, 3]", '{"features": []}'])
def test_parse_analysis_response_rejects_unusable_output(text):
    with pytest.raises(LLMError):
        parse_analysis_response(text)


def test_detect_frameworks():
    paths = ["src/App.tsx", "vite.config.ts", "server.js", "README.md"]
    assert detect_frameworks(paths) == ["Vue.js", "React", "Express.js"]
    assert detect_frameworks(["main.go"]) == []


def test_code_structure_flags_and_limits_files():
    paths = [f"src/file_{i}.py" for i in range(80)] + [".github/workflows/ci.yml", "Dockerfile"]

    code = CodeStructure.from_paths(paths)

    assert len(code.files) == 50
    assert code.has_ci is True
    assert code.has_dockerfile is True
    assert code.has_tests is False


def test_fallback_analysis_is_deterministic_and_complete():
    kwargs = {
        "name": "alpha",
        "description": "Flashcard generator",
        "language": "Python",
        "stars": 3,
        "forks": 1,
    }

    first = build_fallback_analysis(**kwargs)
    second = build_fallback_analysis(**kwargs)

    assert first == second
    assert first.summary.startswith("alpha is a Flashcard generator")
    assert len(first.features) == 5
    assert first.tech_stack.runtime == "Python"
    assert first.used_fallback is True


def test_fallback_analysis_without_metadata():
    result = build_fallback_analysis(
        name="mystery", description=None, language=None, stars=0, forks=0
    )

    assert result.summary
    assert "Built with modern technologies" in result.features
