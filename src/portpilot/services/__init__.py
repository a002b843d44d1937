"""Services"""

from portpilot.services.integrations import get_access_token, save_integration
from portpilot.services.project_analyzer import analyze_project
from portpilot.services.reconciliation import reconcile
from portpilot.services.staleness import needs_reanalysis
from portpilot.services.sync import sync_repositories

__all__ = [
    "analyze_project",
    "get_access_token",
    "needs_reanalysis",
    "reconcile",
    "save_integration",
    "sync_repositories",
]
