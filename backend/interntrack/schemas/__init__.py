"""Pydantic request/response schemas shared across API routers."""

from interntrack.schemas.bulk import BulkDeleteRequest, BulkDeleteResult

__all__ = [
    "BulkDeleteRequest",
    "BulkDeleteResult",
]
