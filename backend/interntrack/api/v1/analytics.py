"""Analytics API router.

Read-only aggregate statistics over the current user's applications.
Results are owner-scoped for every role, admins included.
"""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Query

from interntrack.api.deps import CurrentUserId, DbSession
from interntrack.core.responses import DataResponse
from interntrack.services.analytics import DEFAULT_TIMELINE_DAYS, AnalyticsService

router = APIRouter()

_MAX_TIMELINE_DAYS = 365

TimelineDays = Annotated[
    int,
    Query(
        ge=1,
        le=_MAX_TIMELINE_DAYS,
        description="Trailing window in days",
    ),
]


# =============================================================================
# GET /dashboard
# =============================================================================


@router.get("/dashboard")
async def get_dashboard(
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[dict]:
    """Return dashboard totals and breakdowns.

    Includes the 7-day recent count, offer success rate, status, job type
    and priority breakdowns, monthly counts for the last six months and
    the top five companies.
    """
    result = await AnalyticsService.dashboard(db, user_id)
    return DataResponse(data=asdict(result))


# =============================================================================
# GET /status-stats
# =============================================================================


@router.get("/status-stats")
async def get_status_stats(
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[list[dict]]:
    """Return per-status counts with the mean days since application."""
    stats = await AnalyticsService.status_stats(db, user_id)
    return DataResponse(data=[asdict(s) for s in stats])


# =============================================================================
# GET /timeline
# =============================================================================


@router.get("/timeline")
async def get_timeline(
    user_id: CurrentUserId,
    db: DbSession,
    days: TimelineDays = DEFAULT_TIMELINE_DAYS,
) -> DataResponse[list[dict]]:
    """Return applications per day over the trailing window, oldest first."""
    series = await AnalyticsService.timeline(db, user_id, days)
    return DataResponse(data=[asdict(d) for d in series])


# =============================================================================
# GET /response-rate
# =============================================================================


@router.get("/response-rate")
async def get_response_rate(
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[dict]:
    """Return the share of applications that received any response."""
    result = await AnalyticsService.response_rate(db, user_id)
    return DataResponse(data=asdict(result))


# =============================================================================
# GET /sources
# =============================================================================


@router.get("/sources")
async def get_source_analytics(
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[list[dict]]:
    """Return counts and offer conversion per application source."""
    stats = await AnalyticsService.source_analytics(db, user_id)
    return DataResponse(data=[asdict(s) for s in stats])
