"""Value objects for repository snapshots and sync results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from portpilot.utils.timestamps import parse_iso_timestamp


@dataclass(slots=True)
class RemoteRepository:
    """One repository as reported by the source-control provider.

    Attributes:
        repo_url: Browser URL of the repository, the reconciliation key.
        repo_id: Provider-assigned numeric id, kept as a string.
        primary_language: Language reported by the provider, if any.
        updated_at: Time of the last change reported by the provider.
        malformed: The provider row carried a URL but other fields could not be
            read. Only its identity is usable; reconciliation keeps the stored
            project and skips the create/update step for it.
    """

    repo_url: str
    repo_id: str
    name: str
    description: str | None = None
    homepage: str | None = None
    stars: int = 0
    forks: int = 0
    primary_language: str | None = None
    topics: list[str] = field(default_factory=list)
    updated_at: datetime | None = None
    malformed: bool = False

    @staticmethod
    def identity_of(payload: Any) -> str | None:
        """Return the ``html_url`` of a provider row, or None if it has none."""
        if not isinstance(payload, dict):
            return None
        repo_url = payload.get("html_url")
        return repo_url if isinstance(repo_url, str) and repo_url else None

    @classmethod
    def identity_only(cls, repo_url: str) -> RemoteRepository:
        """Placeholder for a row whose fields could not be read."""
        return cls(
            repo_url=repo_url,
            repo_id="",
            name=repo_url.rstrip("/").rsplit("/", 1)[-1],
            malformed=True,
        )

    @classmethod
    def from_github(cls, payload: dict[str, Any]) -> RemoteRepository:
        """Build a snapshot row from a GitHub ``/user/repos`` item.

        Raises:
            ValueError: If required keys are missing or any field is malformed.
        """
        repo_url = cls.identity_of(payload)
        if repo_url is None:
            raise ValueError("Malformed repository payload: html_url must be a string")

        try:
            name = payload["name"]
            repo_id = payload["id"]
            description = payload.get("description")
            language = payload.get("language")
            if description is not None and not isinstance(description, str):
                raise TypeError("description must be a string")
            if language is not None and not isinstance(language, str):
                raise TypeError("language must be a string")
            topics = payload.get("topics") or []
            return cls(
                repo_url=repo_url,
                repo_id=str(repo_id),
                name=str(name),
                description=description,
                homepage=payload.get("homepage") or None,
                stars=int(payload.get("stargazers_count") or 0),
                forks=int(payload.get("forks_count") or 0),
                primary_language=language,
                topics=[str(topic) for topic in topics],
                updated_at=parse_iso_timestamp(payload.get("updated_at")),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Malformed repository payload for {repo_url}: {exc}") from exc

    @property
    def languages(self) -> dict[str, int]:
        """Language map seeded from the primary language."""
        return {self.primary_language: 100} if self.primary_language else {}


@dataclass(slots=True)
class SyncResult:
    """Counts produced by one reconciliation pass."""

    created: int = 0
    updated: int = 0
    removed: int = 0
    total_fetched: int = 0

    @property
    def message(self) -> str:
        parts = []
        if self.created:
            parts.append(f"{self.created} new repositories")
        if self.updated:
            parts.append(f"{self.updated} updated repositories")
        if self.removed:
            parts.append(f"{self.removed} removed repositories")
        if not parts:
            return "All repositories are up to date"
        return "Synced " + ", ".join(parts)
