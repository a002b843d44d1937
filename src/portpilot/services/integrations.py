"""Stored provider credentials.

The OAuth handshake that obtains tokens lives outside this package; it calls
:func:`save_integration` once it has a token.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from portpilot.constants.enums import IntegrationProvider
from portpilot.data.db import get_session
from portpilot.data.models import Integration, User
from portpilot.services.errors import IntegrationNotFoundError, NotFoundError

__all__ = ["get_access_token", "save_integration"]


def _find_integration(
    session: Session, user_id: int, provider: IntegrationProvider
) -> Integration | None:
    return (
        session.query(Integration)
        .filter(Integration.user_id == user_id, Integration.provider == provider)
        .first()
    )


def get_access_token(
    session: Session,
    user_id: int,
    provider: IntegrationProvider = IntegrationProvider.GITHUB,
) -> str:
    """Return the stored access token for ``provider``.

    Raises:
        IntegrationNotFoundError: If the user never connected the provider.
    """
    integration = _find_integration(session, user_id, provider)
    if integration is None or not integration.access_token:
        raise IntegrationNotFoundError(
            f"{provider.value.capitalize()} integration not found. Please re-authenticate."
        )
    return integration.access_token


def save_integration(
    user_id: int,
    access_token: str,
    *,
    provider: IntegrationProvider = IntegrationProvider.GITHUB,
    scopes: str = "",
    refresh_token: str | None = None,
) -> int:
    """Create or replace the user's credential for ``provider``.

    Returns:
        The integration id.

    Raises:
        NotFoundError: If the user does not exist.
    """
    with get_session() as session:
        if session.get(User, user_id) is None:
            raise NotFoundError("User not found.")

        integration = _find_integration(session, user_id, provider)
        if integration is None:
            integration = Integration(user_id=user_id, provider=provider)
            session.add(integration)
        integration.access_token = access_token
        integration.refresh_token = refresh_token
        integration.scopes = scopes
        session.flush()
        return integration.id
