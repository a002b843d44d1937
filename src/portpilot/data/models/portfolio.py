"""ORM model representing a user's published portfolio and display settings."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portpilot.data.db import Base

if TYPE_CHECKING:
    from portpilot.data.models.project import Project
    from portpilot.data.models.user import User


class Portfolio(Base):
    """One portfolio per user, owning the synchronized projects."""

    __tablename__ = "portfolios"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    theme_id: Mapped[str] = mapped_column(String(32), nullable=False, default="sleek")
    accent_color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    custom_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    show_stats: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Keys: github, x, linkedin, website
    social: Mapped[dict[str, str] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    user: Mapped[User] = relationship("User", back_populates="portfolio")
    projects: Mapped[list[Project]] = relationship(
        "Project",
        back_populates="portfolio",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
