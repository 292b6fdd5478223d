"""Filtering and sorting parameters for the applications collection.

Sorting is a closed set of options. Unknown or empty ``?sort=`` values fall
back to the default explicitly instead of silently matching nothing:

    - `?sort=company`          company ascending
    - `?sort=-company`         company descending
    - `?sort=position`         position ascending
    - `?sort=applicationDate`  application date, newest first
    - `?sort=status`           status ascending
    - anything else            newest created first

Filtering:
    - `?status=interview`  exact match (same for job_type, priority)
    - `?search=acme`       case-insensitive substring over company,
                           position and location (any may match)
"""

from enum import Enum

from fastapi import Query
from pydantic import BaseModel, Field, field_validator

from interntrack.services.application_status import (
    ApplicationStatus,
    JobType,
    Priority,
)

_MAX_SEARCH_LENGTH = 100
"""Safety bound on the search term (longest searchable column is 100)."""

_LIKE_ESCAPE_CHAR = "\\"


class SortOption(Enum):
    """Supported orderings for the applications list."""

    NEWEST = "newest"
    COMPANY_ASC = "company"
    COMPANY_DESC = "-company"
    POSITION_ASC = "position"
    APPLICATION_DATE_DESC = "applicationDate"
    STATUS_ASC = "status"

    @classmethod
    def parse(cls, value: str | None) -> "SortOption":
        """Resolve a raw sort parameter.

        Args:
            value: Raw ``sort`` query value, possibly None.

        Returns:
            The matching option, or NEWEST for missing/unknown values.
        """
        if value:
            for option in cls:
                if option.value == value.strip():
                    return option
        return cls.NEWEST


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so a search term matches literally.

    Args:
        term: Raw user search term.

    Returns:
        Term with ``\\``, ``%`` and ``_`` escaped using ``\\``.
    """
    return (
        term.replace(_LIKE_ESCAPE_CHAR, _LIKE_ESCAPE_CHAR * 2)
        .replace("%", f"{_LIKE_ESCAPE_CHAR}%")
        .replace("_", f"{_LIKE_ESCAPE_CHAR}_")
    )


class ApplicationFilters(BaseModel):
    """Filter parameters for applications.

    Enum filters are exact matches; ``search`` is an OR over company,
    position and location. Blank search terms are treated as absent.
    """

    model_config = {"extra": "ignore"}

    status: ApplicationStatus | None = None
    job_type: JobType | None = None
    priority: Priority | None = None
    search: str | None = Field(default=None, max_length=_MAX_SEARCH_LENGTH)

    @field_validator("search")
    @classmethod
    def blank_search_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


# =============================================================================
# FastAPI Dependency Functions
# =============================================================================


def sort_param(
    sort: str | None = Query(  # noqa: B008
        default=None,
        description="One of: company, -company, position, applicationDate, status.",
        examples=["company", "-company", "applicationDate"],
    ),
) -> SortOption:
    """FastAPI dependency for parsing the sort query parameter."""
    return SortOption.parse(sort)


def application_filters(
    status: ApplicationStatus | None = Query(default=None),  # noqa: B008
    job_type: JobType | None = Query(default=None),  # noqa: B008
    priority: Priority | None = Query(default=None),  # noqa: B008
    search: str | None = Query(default=None, max_length=_MAX_SEARCH_LENGTH),
) -> ApplicationFilters:
    """FastAPI dependency collecting application filters from the query."""
    return ApplicationFilters(
        status=status,
        job_type=job_type,
        priority=priority,
        search=search,
    )
