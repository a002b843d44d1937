"""ORM model representing a repository mirrored into a portfolio.

A project row holds two kinds of data. Mirrored fields (name, description,
homepage, repo_url, stars, forks, languages, topics, last_provider_update)
are overwritten by every repository sync. Enrichment fields (summary,
detailed_description, features, images, stack) plus ``selected`` and
``order`` are only written by explicit edits or by repository analysis.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portpilot.data.db import Base

if TYPE_CHECKING:
    from portpilot.data.models.portfolio import Portfolio

MIRRORED_FIELDS = (
    "repo_id",
    "name",
    "description",
    "homepage",
    "repo_url",
    "stars",
    "forks",
    "languages",
    "topics",
    "last_provider_update",
)

ENRICHMENT_FIELDS = (
    "summary",
    "detailed_description",
    "features",
    "images",
    "stack",
)


class Project(Base):
    """Persisted project mirrored from a remote repository."""

    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("portfolio_id", "repo_url", name="uq_project_repo_url"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    portfolio_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("portfolios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    repo_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    repo_url: Mapped[str] = mapped_column(String(512), nullable=False)
    homepage: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    stars: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    forks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    languages: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False, default=dict)
    topics: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    last_provider_update: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    detailed_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    features: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # Each entry: {"url": str, "alt": str}
    images: Mapped[list[dict[str, str]]] = mapped_column(JSON, nullable=False, default=list)
    stack: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    analyzed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_analyzed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    selected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    portfolio: Mapped[Portfolio] = relationship("Portfolio", back_populates="projects")

    @property
    def primary_language(self) -> str | None:
        """First language recorded for the project, if any."""
        if not self.languages:
            return None
        return next(iter(self.languages))
