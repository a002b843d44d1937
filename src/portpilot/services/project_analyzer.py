"""AI enrichment of a single project.

:class:`ProjectAnalyzer` gathers repository content from GitHub and asks the
configured LLM for portfolio copy. :func:`analyze_project` wraps it with the
ownership, credential and write-back rules:

- an unconfigured LLM fails fast with :class:`LLMConfigurationError`;
- any other LLM failure falls back to :func:`build_fallback_analysis`, so the
  caller always receives usable content;
- ``images`` are never modified by analysis.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from portpilot.constants.enums import IntegrationProvider, ProjectType
from portpilot.data.db import get_session
from portpilot.models.analysis import EnrichmentResult, SuggestedImage, TechStack
from portpilot.services.errors import InvalidRequestError
from portpilot.services.github_client import (
    TREE_FILE_LIMIT,
    GitHubClient,
    GitHubError,
    parse_repo_url,
)
from portpilot.services.integrations import get_access_token
from portpilot.services.llm_providers import LLMError
from portpilot.services.llm_service import LLMService
from portpilot.services.portfolio import get_owned_project, project_to_dict
from portpilot.utils.timestamps import utc_now

logger = logging.getLogger(__name__)

__all__ = [
    "CodeStructure",
    "ProjectAnalyzer",
    "RepositoryData",
    "analyze_project",
    "build_analysis_prompt",
    "build_fallback_analysis",
    "detect_frameworks",
    "parse_analysis_response",
]

README_CHAR_LIMIT = 2000
MANIFEST_CHAR_LIMIT = 1000
MAX_FEATURES = 6

MANIFEST_FILES = (
    "package.json",
    "pyproject.toml",
    "requirements.txt",
    "Cargo.toml",
    "go.mod",
    "pom.xml",
    "Gemfile",
)

# (framework, substrings any of which marks it as present)
_FRAMEWORK_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Next.js", ("next.config", "pages/")),
    ("Vue.js", ("vite.config", "src/App.vue")),
    ("Angular", ("angular.json", "src/app/")),
    ("React", ("src/App.js", "src/App.tsx", "src/App.jsx")),
    ("Flask/Django", ("app.py", "requirements.txt", "manage.py")),
    ("Express.js", ("server.js", "app.js")),
    ("Ruby on Rails", ("Gemfile", "config.ru")),
    ("Flutter", ("pubspec.yaml",)),
)

# language -> (runtime, package manager) for the local fallback
_LANGUAGE_TOOLCHAINS = {
    "Python": ("Python", "pip"),
    "JavaScript": ("Node.js", "npm"),
    "TypeScript": ("Node.js", "npm"),
    "Go": ("Go", "Go modules"),
    "Rust": ("Rust", "Cargo"),
    "Java": ("JVM", "Maven"),
    "Kotlin": ("JVM", "Gradle"),
    "Ruby": ("Ruby", "Bundler"),
    "PHP": ("PHP", "Composer"),
    "C#": (".NET", "NuGet"),
    "Dart": ("Dart", "pub"),
    "Swift": ("Swift", "Swift Package Manager"),
}

SYSTEM_INSTRUCTIONS = (
    "You are an expert software analyst creating compelling portfolio content. "
    "Analyze the GitHub repository described by the user and respond with a single "
    "valid JSON object and nothing else."
)

RESPONSE_FORMAT = """Return a JSON object with these keys:
1. summary: A compelling, professional 3-4 sentence description of the project's value and key capabilities.
2. detailedDescription: A 4-6 paragraph description covering overview, technical implementation, key features, architecture decisions and impact. Separate paragraphs with blank lines.
3. features: Array of 4-6 specific technical features taken from the code and README.
4. techStack: Object with any of framework, runtime, packageManager, database, styling, deployment (strings) and docker (boolean).
5. projectType: One of web-app, mobile-app, cli-tool, library, api, desktop-app, game, other.
6. suggestedImages: Array of 2-3 objects {"type": one of dashboard, mobile, terminal, landing, admin, interface, screenshot, "prompt": a specific description of a realistic screenshot}.
7. keyInsights: Array of technical highlights about architecture, performance or scalability.
8. demoUrl: The homepage if one exists, otherwise null.

Only describe what the repository data supports. Do not invent metrics."""


@dataclass(slots=True)
class RepositoryData:
    """Repository content gathered for the prompt."""

    name: str
    description: str | None = None
    stars: int = 0
    forks: int = 0
    homepage: str | None = None
    languages: dict[str, int] = field(default_factory=dict)
    readme: str | None = None
    manifest_name: str | None = None
    manifest: str | None = None


@dataclass(slots=True)
class CodeStructure:
    """Signals derived from the repository file tree."""

    files: list[str] = field(default_factory=list)
    has_dockerfile: bool = False
    has_tests: bool = False
    has_ci: bool = False
    frameworks: list[str] = field(default_factory=list)

    @classmethod
    def from_paths(cls, paths: Sequence[str]) -> CodeStructure:
        return cls(
            files=list(paths[:TREE_FILE_LIMIT]),
            has_dockerfile=any("Dockerfile" in p for p in paths),
            has_tests=any("test" in p or "spec" in p for p in paths),
            has_ci=any(".github/workflows" in p or ".ci" in p for p in paths),
            frameworks=detect_frameworks(paths),
        )


def detect_frameworks(paths: Sequence[str]) -> list[str]:
    """Guess frameworks from well-known file names in the tree."""
    return [
        name
        for name, markers in _FRAMEWORK_MARKERS
        if any(marker in path for path in paths for marker in markers)
    ]


def build_analysis_prompt(repo_data: RepositoryData, code: CodeStructure) -> str:
    readme = (repo_data.readme or "")[:README_CHAR_LIMIT] or "No README found"
    manifest = (repo_data.manifest or "")[:MANIFEST_CHAR_LIMIT] or "No package manifest found"
    frameworks = ", ".join(code.frameworks) or "None detected"
    return (
        "Repository Info:\n"
        f"- Name: {repo_data.name}\n"
        f"- Description: {repo_data.description or 'None'}\n"
        f"- Languages: {json.dumps(repo_data.languages)}\n"
        f"- Stars: {repo_data.stars}\n"
        f"- Forks: {repo_data.forks}\n"
        f"- Homepage: {repo_data.homepage or 'None'}\n\n"
        "Code Structure:\n"
        f"- Files: {', '.join(code.files[:20])}\n"
        f"- Has Docker: {code.has_dockerfile}\n"
        f"- Has Tests: {code.has_tests}\n"
        f"- Has CI: {code.has_ci}\n"
        f"- Detected Frameworks: {frameworks}\n\n"
        f"README Content (first {README_CHAR_LIMIT} chars):\n{readme}\n\n"
        f"Package manifest ({repo_data.manifest_name or 'none'}):\n{manifest}\n\n"
        f"{RESPONSE_FORMAT}"
    )


def _extract_json_object(text: str) -> dict[str, Any]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise LLMError("Invalid JSON response from AI")
    try:
        decoded = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise LLMError("Invalid JSON response from AI") from exc
    if not isinstance(decoded, dict):
        raise LLMError("Invalid JSON response from AI")
    return decoded


def _string_list(value: Any, limit: int | None = None) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [str(item).strip() for item in value if isinstance(item, str | int | float)]
    items = [item for item in items if item]
    return items[:limit] if limit else items


def parse_analysis_response(text: str, *, homepage: str | None = None) -> EnrichmentResult:
    """Turn the model's reply into an :class:`EnrichmentResult`.

    Tolerates a Markdown code fence or prose around the JSON object.

    Raises:
        LLMError: If no usable JSON object with a summary is present.
    """
    data = _extract_json_object(text or "")

    summary = data.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        raise LLMError("AI response did not include a summary")

    detailed = data.get("detailedDescription") or data.get("detailed_description") or ""
    features = _string_list(data.get("keyFeatures") or data.get("features"), MAX_FEATURES)

    raw_images = data.get("suggestedImages")
    images = []
    for item in raw_images if isinstance(raw_images, list) else []:
        if isinstance(item, dict) and item.get("prompt"):
            images.append(
                SuggestedImage(type=str(item.get("type") or "screenshot"), prompt=str(item["prompt"]))
            )

    demo_url = data.get("demoUrl")
    try:
        return EnrichmentResult(
            summary=summary.strip(),
            detailed_description=str(detailed).strip(),
            features=features,
            tech_stack=TechStack.from_dict(data.get("techStack")),
            project_type=ProjectType.parse(data.get("projectType")),
            suggested_images=images,
            key_insights=_string_list(data.get("keyInsights")),
            demo_url=homepage or (demo_url if isinstance(demo_url, str) and demo_url else None),
        )
    except (TypeError, ValueError) as exc:
        raise LLMError(f"AI response had an unexpected shape: {exc}") from exc


def build_fallback_analysis(
    *,
    name: str,
    description: str | None,
    language: str | None,
    stars: int,
    forks: int,
    homepage: str | None = None,
) -> EnrichmentResult:
    """Synthesize enrichment content from mirrored metadata alone.

    Deterministic: the same inputs always produce the same result.
    """
    what = description or "software project"
    tech = language or "modern technologies"
    runtime, package_manager = _LANGUAGE_TOOLCHAINS.get(language or "", (None, None))

    summary = (
        f"{name} is a {what} that demonstrates modern development practices. "
        "This project showcases technical expertise and attention to detail in software "
        "development."
    )
    detailed_description = "\n\n".join(
        [
            f"{name} is a {what} built with {tech}.",
            f"The implementation uses {tech} and follows established patterns for "
            "maintainable code.",
            f"The repository has {stars} stars and {forks} forks on GitHub.",
        ]
    )
    features = [
        "Well-structured and maintainable codebase",
        "Modern development practices and patterns",
        "Comprehensive project documentation" if description else "Professional development standards",
        f"Built with {tech}",
        "Community engagement and open-source contribution",
    ]
    return EnrichmentResult(
        summary=summary,
        detailed_description=detailed_description,
        features=features,
        tech_stack=TechStack(framework=language, runtime=runtime, package_manager=package_manager),
        project_type=ProjectType.OTHER,
        suggested_images=[
            SuggestedImage(
                type="interface",
                prompt=f"A clean interface for {name} showing its main screen with modern UI "
                "elements and clear typography",
            ),
            SuggestedImage(
                type="screenshot",
                prompt=f"A detailed view of {name} showcasing its key features",
            ),
        ],
        key_insights=[f"Demonstrates expertise in {language or 'software development'}"],
        demo_url=homepage,
        used_fallback=True,
    )


class ProjectAnalyzer:
    """Gather repository content from GitHub and ask the LLM for portfolio copy."""

    def __init__(self, llm_service: LLMService, github: GitHubClient) -> None:
        self.llm_service = llm_service
        self.github = github

    def fetch_repository_data(self, owner: str, repo: str, paths: Sequence[str]) -> RepositoryData:
        """Collect metadata, languages, README and manifest; each part is optional."""
        data = RepositoryData(name=repo)
        try:
            info = self.github.get_repository(owner, repo)
            data.name = str(info.get("name") or repo)
            description = info.get("description")
            data.description = description if isinstance(description, str) else None
            data.stars = int(info.get("stargazers_count") or 0)
            data.forks = int(info.get("forks_count") or 0)
            homepage = info.get("homepage")
            data.homepage = homepage if isinstance(homepage, str) and homepage else None
        except (GitHubError, TypeError, ValueError):
            logger.warning("Could not load metadata for %s/%s", owner, repo)

        try:
            data.languages = self.github.list_languages(owner, repo)
        except GitHubError:
            logger.warning("Could not load languages for %s/%s", owner, repo)

        try:
            data.readme = self.github.get_repository_content(owner, repo, "README.md")
        except GitHubError:
            logger.warning("Could not load README for %s/%s", owner, repo)

        candidates = [name for name in MANIFEST_FILES if name in paths] or ["package.json"]
        try:
            data.manifest = self.github.get_repository_content(owner, repo, candidates[0])
            if data.manifest is not None:
                data.manifest_name = candidates[0]
        except GitHubError:
            logger.warning("Could not load %s for %s/%s", candidates[0], owner, repo)
        return data

    def fetch_tree(self, owner: str, repo: str) -> list[str]:
        try:
            return self.github.get_repository_tree(owner, repo)
        except GitHubError:
            logger.warning("Could not load file tree for %s/%s", owner, repo)
            return []

    def analyze_repository(
        self, owner: str, repo: str, *, homepage: str | None = None
    ) -> EnrichmentResult:
        """Run the full analysis.

        Raises:
            LLMError: If the model call fails or returns unusable output.
        """
        paths = self.fetch_tree(owner, repo)
        repo_data = self.fetch_repository_data(owner, repo, paths)
        code = CodeStructure.from_paths(paths)
        result_text = self.llm_service.generate_llm_response(
            system_instructions=SYSTEM_INSTRUCTIONS,
            user_content=build_analysis_prompt(repo_data, code),
            temperature=0.3,
        )
        result = parse_analysis_response(result_text, homepage=homepage or repo_data.homepage)
        if code.has_dockerfile:
            result.tech_stack.docker = True
        return result


def analyze_project(
    user_id: int,
    project_id: int,
    *,
    llm_service: LLMService | None = None,
    client_factory: Callable[[str], GitHubClient] = GitHubClient,
) -> dict[str, Any]:
    """Analyze one project and store the enrichment.

    Args:
        user_id: Caller, who must own the project.
        project_id: Project to analyze.
        llm_service: Service to use; defaults to the provider configured in the
            environment.
        client_factory: Builds a GitHub client from an access token.

    Returns:
        ``{"analysis": ..., "project": ..., "used_fallback": bool}``.

    Raises:
        NotFoundError / AccessDeniedError: Project missing or not owned.
        InvalidRequestError: The project URL is not a GitHub repository.
        LLMConfigurationError: No LLM provider is configured.
        IntegrationNotFoundError: No GitHub token is stored for the user.
    """
    with get_session() as session:
        project = get_owned_project(session, user_id, project_id)
        try:
            owner, repo = parse_repo_url(project.repo_url)
        except ValueError as exc:
            raise InvalidRequestError("Invalid GitHub repository URL") from exc
        snapshot = {
            "name": project.name,
            "description": project.description,
            "language": project.primary_language,
            "stars": project.stars,
            "forks": project.forks,
            "homepage": project.homepage,
        }

        service = llm_service or LLMService()
        access_token = get_access_token(session, user_id, IntegrationProvider.GITHUB)

    analyzer = ProjectAnalyzer(service, client_factory(access_token))
    try:
        result = analyzer.analyze_repository(owner, repo, homepage=snapshot["homepage"])
    except (LLMError, GitHubError):
        logger.exception("AI analysis failed for project %d, using fallback", project_id)
        result = build_fallback_analysis(**snapshot)

    with get_session() as session:
        project = get_owned_project(session, user_id, project_id)
        project.summary = result.summary
        project.detailed_description = result.detailed_description
        project.features = list(result.features)
        project.stack = result.tech_stack.to_dict()
        project.analyzed = True
        project.last_analyzed_at = utc_now()
        session.flush()
        return {
            "analysis": result.to_dict(),
            "project": project_to_dict(project),
            "used_fallback": result.used_fallback,
        }
