"""Route handlers for the API."""

from portpilot.api.routes import (
    admin,
    dashboard,
    health,
    portfolio,
    projects,
    sync,
    themes,
    users,
)

__all__ = [
    "admin",
    "dashboard",
    "health",
    "portfolio",
    "projects",
    "sync",
    "themes",
    "users",
]
