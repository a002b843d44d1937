"""Shared Pydantic schemas for API responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Default pagination values
DEFAULT_LIMIT = 50
MAX_LIMIT = 100


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys.

    Requests accept either camelCase or snake_case field names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginationMeta(CamelModel):
    """Pagination metadata for list responses."""

    total: int = Field(description="Total number of items available")
    limit: int = Field(description="Maximum number of items returned")
    offset: int = Field(description="Number of items skipped")
    has_more: bool = Field(description="Whether there are more items available")


class SuccessResponse(CamelModel):
    success: bool = True
    message: str | None = None
