"""Data models and type definitions"""

from portpilot.models.analysis import EnrichmentResult, ProjectImage, SuggestedImage, TechStack
from portpilot.models.repository import RemoteRepository, SyncResult

__all__ = [
    "EnrichmentResult",
    "ProjectImage",
    "RemoteRepository",
    "SuggestedImage",
    "SyncResult",
    "TechStack",
]
