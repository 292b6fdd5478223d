"""Application analytics: aggregate statistics over one owner's records.

Two layers:

1. Pure functions (dashboard, status_stats, application_timeline,
   response_rate, source_analytics) that take any sequence of records
   exposing status, job_type, priority, source, company, application_date
   and created_at, plus the reference time ``now``.
2. AnalyticsService, which loads one owner's rows from the repository and
   calls the pure functions. Read-only.

Percentages are floats rounded to 2 decimals. Any ratio over an empty set is
0; averages over an empty group are never produced (the group is absent).
Calendar grouping uses UTC.
"""

import calendar
import uuid
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from interntrack.core.errors import ValidationError
from interntrack.models.base import utcnow
from interntrack.repositories.application_repository import ApplicationRepository
from interntrack.services.application_status import (
    NO_RESPONSE_STATUSES,
    OFFER_STATUSES,
    RESPONDED_STATUSES,
)

_OFFER_VALUES = frozenset(s.value for s in OFFER_STATUSES)
_RESPONDED_VALUES = frozenset(s.value for s in RESPONDED_STATUSES)
_NO_RESPONSE_VALUES = frozenset(s.value for s in NO_RESPONSE_STATUSES)

_MONTHLY_WINDOW_MONTHS = 6
_RECENT_WINDOW = timedelta(days=7)
_TOP_COMPANIES_LIMIT = 5
_SECONDS_PER_DAY = 60 * 60 * 24

DEFAULT_TIMELINE_DAYS = 30


class AnalyticsRecord(Protocol):
    """The attributes analytics reads from a record (ORM object or row)."""

    status: str
    job_type: str
    priority: str
    source: str
    company: str
    application_date: datetime
    created_at: datetime


# =============================================================================
# Result Dataclasses
# =============================================================================


@dataclass(frozen=True)
class StatusCount:
    status: str
    count: int


@dataclass(frozen=True)
class JobTypeCount:
    job_type: str
    count: int


@dataclass(frozen=True)
class PriorityCount:
    priority: str
    count: int


@dataclass(frozen=True)
class CompanyCount:
    company: str
    count: int


@dataclass(frozen=True)
class MonthlyCount:
    """Applications dated in one calendar month."""

    year: int
    month: int
    count: int


@dataclass(frozen=True)
class DailyCount:
    """Applications dated on one calendar day (ISO ``YYYY-MM-DD``)."""

    date: str
    count: int


@dataclass(frozen=True)
class StatusStat:
    """Count and mean age in days for one status."""

    status: str
    count: int
    avg_days_since: int


@dataclass(frozen=True)
class SourceStat:
    """Conversion figures for one source."""

    source: str
    count: int
    offer_count: int
    success_rate: float


@dataclass(frozen=True)
class ResponseRate:
    """Share of applications that got any employer response.

    Withdrawn applications count toward ``total`` but fall in neither
    ``responded`` nor ``no_response``.
    """

    total: int
    responded: int
    no_response: int
    response_rate: float


@dataclass(frozen=True)
class DashboardAnalytics:
    """Summary figures for the dashboard."""

    total_applications: int
    recent_count: int
    success_rate: float
    offer_count: int
    status_breakdown: list[StatusCount] = field(default_factory=list)
    job_type_breakdown: list[JobTypeCount] = field(default_factory=list)
    monthly_applications: list[MonthlyCount] = field(default_factory=list)
    priority_breakdown: list[PriorityCount] = field(default_factory=list)
    top_companies: list[CompanyCount] = field(default_factory=list)


# =============================================================================
# Helpers
# =============================================================================


def percentage(part: int, whole: int) -> float:
    """part / whole as a percentage rounded to 2 decimals, 0 when whole is 0."""
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


def months_before(moment: datetime, months: int) -> datetime:
    """Shift ``moment`` back by calendar months, clamping the day.

    Args:
        moment: Reference time.
        months: Number of months to go back.

    Returns:
        Same time of day ``months`` months earlier; e.g. Aug 31 minus six
        months is Feb 28 (or 29).
    """
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _ranked(values: Iterable[str]) -> list[tuple[str, int]]:
    """Count values, most frequent first; ties keep first-seen order."""
    return Counter(values).most_common()


def _count_by(
    records: Sequence[AnalyticsRecord],
    key: Callable[[AnalyticsRecord], str],
) -> list[tuple[str, int]]:
    return _ranked(key(r) for r in records)


# =============================================================================
# Aggregations
# =============================================================================


def status_breakdown(records: Sequence[AnalyticsRecord]) -> list[StatusCount]:
    return [StatusCount(s, n) for s, n in _count_by(records, lambda r: r.status)]


def monthly_applications(
    records: Sequence[AnalyticsRecord], now: datetime
) -> list[MonthlyCount]:
    """Count applications per (year, month) over the last six months.

    Args:
        records: One owner's records.
        now: Reference time.

    Returns:
        MonthlyCount per month that has data, oldest first.
    """
    since = months_before(now, _MONTHLY_WINDOW_MONTHS)
    counts = Counter(
        (r.application_date.year, r.application_date.month)
        for r in records
        if r.application_date >= since
    )
    return [MonthlyCount(y, m, counts[(y, m)]) for y, m in sorted(counts)]


def dashboard(
    records: Sequence[AnalyticsRecord],
    now: datetime | None = None,
) -> DashboardAnalytics:
    """Compute the dashboard summary.

    Args:
        records: One owner's records.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        DashboardAnalytics. Every breakdown is empty and every rate 0 when
        there are no records.
    """
    now = now or utcnow()
    total = len(records)
    offer_count = sum(1 for r in records if r.status in _OFFER_VALUES)
    recent_since = now - _RECENT_WINDOW

    return DashboardAnalytics(
        total_applications=total,
        recent_count=sum(1 for r in records if r.created_at >= recent_since),
        success_rate=percentage(offer_count, total),
        offer_count=offer_count,
        status_breakdown=status_breakdown(records),
        job_type_breakdown=[
            JobTypeCount(t, n) for t, n in _count_by(records, lambda r: r.job_type)
        ],
        monthly_applications=monthly_applications(records, now),
        priority_breakdown=[
            PriorityCount(p, n) for p, n in _count_by(records, lambda r: r.priority)
        ],
        top_companies=[
            CompanyCount(c, n)
            for c, n in _count_by(records, lambda r: r.company)[:_TOP_COMPANIES_LIMIT]
        ],
    )


def status_stats(
    records: Sequence[AnalyticsRecord],
    now: datetime | None = None,
) -> list[StatusStat]:
    """Per-status count and mean days since application.

    Args:
        records: One owner's records.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        StatusStat per status that has records, most frequent first.
        ``avg_days_since`` is rounded to the nearest integer.
    """
    now = now or utcnow()
    ages: dict[str, list[float]] = {}
    for r in records:
        elapsed_days = (now - r.application_date).total_seconds() / _SECONDS_PER_DAY
        ages.setdefault(r.status, []).append(elapsed_days)

    stats = [
        StatusStat(
            status=status,
            count=len(values),
            avg_days_since=round(sum(values) / len(values)),
        )
        for status, values in ages.items()
    ]
    return sorted(stats, key=lambda s: s.count, reverse=True)


def application_timeline(
    records: Sequence[AnalyticsRecord],
    days: int = DEFAULT_TIMELINE_DAYS,
    now: datetime | None = None,
) -> list[DailyCount]:
    """Applications per calendar day over the trailing window.

    The series is sparse: days without applications are omitted.

    Args:
        records: One owner's records.
        days: Window length in days (>= 1).
        now: Reference time. Defaults to the current UTC time.

    Returns:
        DailyCount per day with data, oldest first.

    Raises:
        ValidationError: If days is below 1.
    """
    if days < 1:
        raise ValidationError(
            "days must be at least 1",
            details=[{"field": "days", "value": days}],
        )
    now = now or utcnow()
    since = now - timedelta(days=days)
    counts: Counter[date] = Counter(
        r.application_date.date() for r in records if r.application_date >= since
    )
    return [DailyCount(day.isoformat(), counts[day]) for day in sorted(counts)]


def response_rate(records: Sequence[AnalyticsRecord]) -> ResponseRate:
    """Share of applications with an employer response.

    Responded means interview, offer, accepted or rejected; no response
    means still applied. Withdrawn is in neither bucket.
    """
    total = len(records)
    responded = sum(1 for r in records if r.status in _RESPONDED_VALUES)
    no_response = sum(1 for r in records if r.status in _NO_RESPONSE_VALUES)
    return ResponseRate(
        total=total,
        responded=responded,
        no_response=no_response,
        response_rate=percentage(responded, total),
    )


def source_analytics(records: Sequence[AnalyticsRecord]) -> list[SourceStat]:
    """Count and offer conversion per source, most used first."""
    offers = Counter(r.source for r in records if r.status in _OFFER_VALUES)
    return [
        SourceStat(
            source=source,
            count=count,
            offer_count=offers[source],
            success_rate=percentage(offers[source], count),
        )
        for source, count in _count_by(records, lambda r: r.source)
    ]


# =============================================================================
# Service
# =============================================================================


class AnalyticsService:
    """Loads one owner's records and runs the aggregations over them.

    All methods are static. Results only ever include the given owner's
    records, whatever the caller's role.
    """

    @staticmethod
    async def _records(db: AsyncSession, user_id: uuid.UUID) -> list:
        return await ApplicationRepository.get_analytics_rows(db, user_id=user_id)

    @staticmethod
    async def dashboard(
        db: AsyncSession, user_id: uuid.UUID, now: datetime | None = None
    ) -> DashboardAnalytics:
        return dashboard(await AnalyticsService._records(db, user_id), now)

    @staticmethod
    async def status_stats(
        db: AsyncSession, user_id: uuid.UUID, now: datetime | None = None
    ) -> list[StatusStat]:
        return status_stats(await AnalyticsService._records(db, user_id), now)

    @staticmethod
    async def timeline(
        db: AsyncSession,
        user_id: uuid.UUID,
        days: int = DEFAULT_TIMELINE_DAYS,
        now: datetime | None = None,
    ) -> list[DailyCount]:
        return application_timeline(
            await AnalyticsService._records(db, user_id), days, now
        )

    @staticmethod
    async def response_rate(db: AsyncSession, user_id: uuid.UUID) -> ResponseRate:
        return response_rate(await AnalyticsService._records(db, user_id))

    @staticmethod
    async def source_analytics(
        db: AsyncSession, user_id: uuid.UUID
    ) -> list[SourceStat]:
        return source_analytics(await AnalyticsService._records(db, user_id))
