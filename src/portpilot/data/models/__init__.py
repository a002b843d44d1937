"""ORM models package for database tables.

This package provides SQLAlchemy ORM models representing database tables:
- User: Account, billing plan and admin role
- Portfolio: Published portfolio and display settings
- Project: Repository mirrored into a portfolio plus enrichment content
- Integration: Stored OAuth credential for a source-control provider
- AdminAction: Audit log of admin mutations

All models inherit from the shared Base declarative class defined in data.db.
"""

from portpilot.data.db import Base
from portpilot.data.models.admin_action import AdminAction
from portpilot.data.models.integration import Integration
from portpilot.data.models.portfolio import Portfolio
from portpilot.data.models.project import Project
from portpilot.data.models.user import User

__all__ = ["AdminAction", "Base", "Integration", "Portfolio", "Project", "User"]
