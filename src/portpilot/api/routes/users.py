"""User routes for the API."""

from __future__ import annotations

from fastapi import APIRouter

from portpilot.api.dependencies import CurrentUser
from portpilot.api.schemas.users import UserResponse
from portpilot.services.admin import user_to_dict

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse, summary="Get the signed-in user")
def get_me(user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(user_to_dict(user))
