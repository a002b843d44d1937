"""Exceptions raised by the service layer.

Route handlers translate these into HTTP status codes; services never raise
``HTTPException`` themselves.
"""

from __future__ import annotations


class PortPilotError(Exception):
    """Base class for service-level errors."""


class NotFoundError(PortPilotError):
    """The referenced user, portfolio or project does not exist."""


class AccessDeniedError(PortPilotError):
    """The caller does not own the referenced resource or lacks the role."""


class IntegrationNotFoundError(PortPilotError):
    """The user has no stored credential for the provider; re-authentication is required."""


class PlanRequiredError(PortPilotError):
    """The requested feature needs a higher billing plan."""


class InvalidRequestError(PortPilotError):
    """The request is well-formed but cannot be applied."""
