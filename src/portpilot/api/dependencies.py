"""Shared dependencies for API routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from portpilot.data.db import get_session
from portpilot.data.models import User
from portpilot.services.admin import ensure_can_administer
from portpilot.services.errors import (
    AccessDeniedError,
    IntegrationNotFoundError,
    InvalidRequestError,
    NotFoundError,
    PlanRequiredError,
    PortPilotError,
)

_ERROR_STATUS: tuple[tuple[type[PortPilotError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AccessDeniedError, status.HTTP_403_FORBIDDEN),
    (PlanRequiredError, status.HTTP_403_FORBIDDEN),
    (IntegrationNotFoundError, status.HTTP_400_BAD_REQUEST),
    (InvalidRequestError, status.HTTP_400_BAD_REQUEST),
)


def to_http_exception(exc: PortPilotError) -> HTTPException:
    """Translate a service error into the matching HTTP error."""
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def get_current_user(
    x_user_handle: Annotated[
        str | None,
        Header(
            description=(
                "Handle of the signed-in user. In production, this should be "
                "extracted from the authenticated session."
            )
        ),
    ] = None,
) -> User:
    """Resolve the calling user from the request context.

    NOTE: This is a simplified implementation using a header.
    In production, the session layer resolves the user.

    Raises:
        HTTPException: 401 if the header is missing or unknown, 403 if the
            account is suspended.
    """
    if not x_user_handle:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication. Please provide X-User-Handle header.",
        )
    with get_session() as session:
        user = session.query(User).filter(User.handle == x_user_handle).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated.",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been suspended.",
        )
    return user


def get_optional_user(
    x_user_handle: Annotated[str | None, Header()] = None,
) -> User | None:
    """Resolve the calling user if the header names an active account.

    Unlike ``get_current_user`` this never raises; anonymous callers get None.
    """
    if not x_user_handle:
        return None
    with get_session() as session:
        user = session.query(User).filter(User.handle == x_user_handle).first()
    if user is None or not user.is_active:
        return None
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]


def require_admin(user: CurrentUser) -> User:
    """Allow only active admins through."""
    try:
        ensure_can_administer(user)
    except AccessDeniedError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return user


AdminUser = Annotated[User, Depends(require_admin)]
