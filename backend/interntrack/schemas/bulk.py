"""Bulk operation request/response schemas.

Bulk delete is partial-success tolerant: ids the caller does not own (or
that do not exist) are skipped and only the number actually deleted is
reported.
"""

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

_MAX_BULK_IDS = 500
"""Safety bound on ids per bulk request."""

_MAX_ID_LENGTH = 64
"""Safety bound on a single id string."""


class BulkDeleteRequest(BaseModel):
    """Request body for DELETE /applications/bulk.

    Attributes:
        ids: Application UUIDs to delete.
    """

    ids: list[Annotated[str, StringConstraints(max_length=_MAX_ID_LENGTH)]] = Field(
        ...,
        min_length=1,
        max_length=_MAX_BULK_IDS,
        description="Application IDs to delete; malformed ids match nothing",
    )


class BulkDeleteResult(BaseModel):
    """Result of a bulk delete.

    Attributes:
        deleted_count: Number of applications actually deleted.
    """

    deleted_count: int = Field(..., ge=0, description="Applications deleted")
