"""User account model.

Accounts are created by the GitHub sign-in layer; this table carries the
public profile shown on the portfolio page, the billing plan and the admin
role.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portpilot.constants.enums import Plan, Role
from portpilot.data.db import Base

if TYPE_CHECKING:
    from portpilot.data.models.integration import Integration
    from portpilot.data.models.portfolio import Portfolio


def _enum_values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


class User(Base):
    """Application user account.

    Attributes:
        id: Auto-incrementing primary key.
        handle: Unique public handle used in portfolio URLs.
        github_id: Provider account id, unique when present.
        plan: Billing tier.
        role: Administrative role.
        is_active: False when an admin has suspended the account.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    handle: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    github_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    email: Mapped[str | None] = mapped_column(String(256), unique=True, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(256), nullable=True)
    website: Mapped[str | None] = mapped_column(Text, nullable=True)
    plan: Mapped[Plan] = mapped_column(
        Enum(Plan, name="plan", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=Plan.FREE,
    )
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="role", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=Role.USER,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    portfolio: Mapped[Portfolio | None] = relationship(
        "Portfolio", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    integrations: Mapped[list[Integration]] = relationship(
        "Integration", back_populates="user", cascade="all, delete-orphan"
    )
