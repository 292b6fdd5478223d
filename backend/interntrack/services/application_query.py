"""Application listing: filter, sort and paginate one owner's records.

The listing is always scoped to the requesting owner. Admins get no
override here; their elevated access applies to single records only.
"""

import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from interntrack.core.filtering import ApplicationFilters, SortOption
from interntrack.core.pagination import PaginationParams
from interntrack.models.application import Application
from interntrack.repositories.application_repository import ApplicationRepository


@dataclass(frozen=True)
class ApplicationPage:
    """One page of applications.

    Attributes:
        items: Records on this page.
        total: Matching records across all pages.
        page: Page number (1-indexed, normalized).
        per_page: Page size (normalized).
        page_count: ceil(total / per_page), 0 when nothing matches.
    """

    items: list[Application]
    total: int
    page: int
    per_page: int
    page_count: int


async def list_applications(
    db: AsyncSession,
    owner_id: uuid.UUID,
    *,
    filters: ApplicationFilters | None = None,
    sort: SortOption | str | None = None,
    page: int | None = 1,
    per_page: int | None = None,
) -> ApplicationPage:
    """List an owner's applications.

    Args:
        db: Async database session.
        owner_id: The requesting user's id.
        filters: Optional status/job_type/priority/search filters.
        sort: SortOption or raw sort string; unknown values mean newest first.
        page: Requested page; values below 1 become 1.
        per_page: Requested page size; clamped to [1, max_page_size].

    Returns:
        ApplicationPage with the slice and its counts.
    """
    if not isinstance(sort, SortOption):
        sort = SortOption.parse(sort)
    pagination = PaginationParams.normalized(page, per_page)

    items, total = await ApplicationRepository.list_for_user(
        db,
        user_id=owner_id,
        filters=filters,
        sort=sort,
        pagination=pagination,
    )
    return ApplicationPage(
        items=items,
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        page_count=pagination.page_count(total),
    )
