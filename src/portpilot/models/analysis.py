"""Typed value objects for project enrichment."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from portpilot.constants.enums import ProjectType

_STACK_TEXT_FIELDS = (
    "framework",
    "runtime",
    "package_manager",
    "database",
    "styling",
    "deployment",
)

# Model output uses camelCase keys.
_STACK_ALIASES = {
    "packageManager": "package_manager",
}


@dataclass(slots=True)
class ProjectImage:
    """An image attached to a project."""

    url: str
    alt: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "alt": self.alt}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectImage:
        return cls(url=str(data.get("url", "")), alt=str(data.get("alt", "")))


@dataclass(slots=True)
class TechStack:
    """Best-effort guess of the tools a project is built with."""

    framework: str | None = None
    runtime: str | None = None
    package_manager: str | None = None
    database: str | None = None
    styling: str | None = None
    deployment: str | None = None
    docker: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return only the populated fields, for JSON storage."""
        return {key: value for key, value in asdict(self).items() if value not in (None, False)}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TechStack:
        if not isinstance(data, dict):
            return cls()
        stack = cls()
        for raw_key, value in data.items():
            key = _STACK_ALIASES.get(raw_key, raw_key)
            if key == "docker":
                stack.docker = bool(value)
            elif key in _STACK_TEXT_FIELDS and value is not None:
                if isinstance(value, list):
                    value = ", ".join(str(item) for item in value)
                setattr(stack, key, str(value))
        return stack


@dataclass(slots=True)
class SuggestedImage:
    """Prompt for an illustrative screenshot of the project."""

    type: str
    prompt: str


@dataclass(slots=True)
class EnrichmentResult:
    """Content produced by analysing a repository.

    Attributes:
        used_fallback: True when the result was synthesized locally because the
            language model call failed.
    """

    summary: str
    detailed_description: str
    features: list[str] = field(default_factory=list)
    tech_stack: TechStack = field(default_factory=TechStack)
    project_type: ProjectType = ProjectType.OTHER
    suggested_images: list[SuggestedImage] = field(default_factory=list)
    key_insights: list[str] = field(default_factory=list)
    demo_url: str | None = None
    used_fallback: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "detailed_description": self.detailed_description,
            "features": list(self.features),
            "tech_stack": self.tech_stack.to_dict(),
            "project_type": self.project_type.value,
            "suggested_images": [asdict(image) for image in self.suggested_images],
            "key_insights": list(self.key_insights),
            "demo_url": self.demo_url,
            "used_fallback": self.used_fallback,
        }
