"""Pagination utilities.

page (default 1) and per_page (default from settings, max from settings).
Out-of-range values are normalized rather than rejected: anything below 1
becomes 1 and per_page is capped at the configured maximum. page itself has
a hard upper bound so the SQL offset stays within integer range; requests
above it are rejected with a 400.
"""

import math
from dataclasses import dataclass

from fastapi import Query

from interntrack.core.config import settings

MAX_PAGE = 1_000_000
"""Upper bound on page so offset fits a 64-bit database integer."""


@dataclass(frozen=True)
class PaginationParams:
    """Pagination query parameters.

    Attributes:
        page: Current page number (1-indexed).
        per_page: Number of items per page.
    """

    page: int
    per_page: int

    @classmethod
    def normalized(
        cls,
        page: int | None,
        per_page: int | None,
        *,
        max_per_page: int | None = None,
    ) -> "PaginationParams":
        """Build params with out-of-range values clamped.

        Args:
            page: Requested page; None or < 1 becomes 1.
            per_page: Requested page size; None falls back to the default,
                < 1 becomes 1, values above the maximum are capped.
            max_per_page: Upper bound for per_page. Defaults to settings.

        Returns:
            PaginationParams with page >= 1 and 1 <= per_page <= max.
        """
        upper = max_per_page if max_per_page is not None else settings.max_page_size
        if per_page is None:
            per_page = settings.default_page_size
        return cls(
            page=max(page or 1, 1),
            per_page=min(max(per_page, 1), upper),
        )

    @property
    def offset(self) -> int:
        """Calculate SQL OFFSET for database queries.

        Returns:
            Number of items to skip (0 for page 1).
        """
        return (self.page - 1) * self.per_page

    @property
    def limit(self) -> int:
        """Calculate SQL LIMIT for database queries.

        Returns:
            Maximum number of items to return (same as per_page).
        """
        return self.per_page

    def page_count(self, total: int) -> int:
        """Number of pages needed for ``total`` items (0 when empty)."""
        return math.ceil(total / self.per_page)


def pagination_params(
    page: int = Query(
        default=1, le=MAX_PAGE, description="Page number (1-indexed)"
    ),
    per_page: int | None = Query(
        default=None,
        description="Items per page (values out of range are clamped)",
    ),
) -> PaginationParams:
    """FastAPI dependency for pagination query parameters.

    Usage:
        @router.get("")
        async def list_items(
            pagination: PaginationParams = Depends(pagination_params)
        ):
            ...

    Args:
        page: Page number (default 1).
        per_page: Items per page (default from settings).

    Returns:
        Normalized PaginationParams.
    """
    return PaginationParams.normalized(page, per_page)
