"""Repository for Application records and their timeline.

The store the lifecycle, query and analytics services run over. Collection
reads are always scoped to one owner. Single-record lookup by id is
unscoped on purpose: the lifecycle service decides between owner, admin and
foreign callers.
"""

import uuid
from datetime import datetime
from typing import Any, cast

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.engine import CursorResult, Row
from sqlalchemy.ext.asyncio import AsyncSession

from interntrack.core.filtering import ApplicationFilters, SortOption, escape_like
from interntrack.core.pagination import PaginationParams
from interntrack.models.application import Application, TimelineEntry
from interntrack.models.base import utcnow

# Fields that may be updated via ApplicationRepository.update().
# Security: Never allow updating id, user_id, or timestamps.
# - id: primary key, immutable
# - user_id: owner reference, set at creation (changing would move ownership)
# - created_at/updated_at: system-managed timestamps
# - timeline: append-only, written through add_timeline_entry() only
# - attachments: append-only, written through add_attachment() only
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "company",
        "position",
        "location",
        "job_type",
        "status",
        "priority",
        "source",
        "job_url",
        "notes",
        "interview_date",
        "deadline",
        "contact_person",
        "salary_min",
        "salary_max",
        "salary_currency",
        "tags",
        "application_date",
    }
)

# Columns the analytics engine aggregates over.
_ANALYTICS_COLUMNS = (
    Application.status,
    Application.job_type,
    Application.priority,
    Application.source,
    Application.company,
    Application.application_date,
    Application.created_at,
)

_ORDERINGS = {
    SortOption.NEWEST: (Application.created_at.desc(),),
    SortOption.COMPANY_ASC: (Application.company.asc(),),
    SortOption.COMPANY_DESC: (Application.company.desc(),),
    SortOption.POSITION_ASC: (Application.position.asc(),),
    SortOption.APPLICATION_DATE_DESC: (Application.application_date.desc(),),
    SortOption.STATUS_ASC: (Application.status.asc(),),
}


def _apply_filters(
    stmt: Select, user_id: uuid.UUID, filters: ApplicationFilters | None
) -> Select:
    stmt = stmt.where(Application.user_id == user_id)
    if filters is None:
        return stmt
    if filters.status is not None:
        stmt = stmt.where(Application.status == filters.status.value)
    if filters.job_type is not None:
        stmt = stmt.where(Application.job_type == filters.job_type.value)
    if filters.priority is not None:
        stmt = stmt.where(Application.priority == filters.priority.value)
    if filters.search:
        pattern = f"%{escape_like(filters.search)}%"
        stmt = stmt.where(
            or_(
                Application.company.ilike(pattern, escape="\\"),
                Application.position.ilike(pattern, escape="\\"),
                Application.location.ilike(pattern, escape="\\"),
            )
        )
    return stmt


class ApplicationRepository:
    """Stateless repository for Application operations.

    All methods are static with no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    def validate_fields(fields: dict[str, Any]) -> None:
        """Reject field names outside the updatable set.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        application_id: uuid.UUID,
    ) -> Application | None:
        """Fetch an Application by ID regardless of owner.

        Callers must authorize the result against the requesting principal
        before returning it to a client.

        Args:
            db: Async database session.
            application_id: UUID primary key.

        Returns:
            Application with its timeline loaded, or None.
        """
        result = await db.execute(
            select(Application).where(Application.id == application_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        filters: ApplicationFilters | None = None,
        sort: SortOption = SortOption.NEWEST,
        pagination: PaginationParams,
    ) -> tuple[list[Application], int]:
        """Fetch one page of a user's applications.

        Args:
            db: Async database session.
            user_id: Owner whose records are listed.
            filters: Optional exact-match and search filters.
            sort: Ordering option; ties are broken by id.
            pagination: Normalized page/per_page.

        Returns:
            Tuple of (items on the page, total matching count).
        """
        total = await ApplicationRepository.count_for_user(
            db, user_id=user_id, filters=filters
        )

        stmt = (
            _apply_filters(select(Application), user_id, filters)
            .order_by(*_ORDERINGS[sort], Application.id.asc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all()), total

    @staticmethod
    async def count_for_user(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        filters: ApplicationFilters | None = None,
    ) -> int:
        """Count a user's applications matching optional filters."""
        stmt = _apply_filters(
            select(func.count()).select_from(Application), user_id, filters
        )
        return (await db.execute(stmt)).scalar_one()

    @staticmethod
    async def get_analytics_rows(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
    ) -> list[Row]:
        """Fetch the columns analytics aggregates over, for one user.

        Returns lightweight rows (attribute access by column name) instead of
        ORM instances so reporting never touches the identity map.

        Args:
            db: Async database session.
            user_id: Owner whose records are aggregated.

        Returns:
            Rows with status, job_type, priority, source, company,
            application_date and created_at, oldest created first.
        """
        stmt = (
            select(*_ANALYTICS_COLUMNS)
            .where(Application.user_id == user_id)
            .order_by(Application.created_at.asc(), Application.id.asc())
        )
        result = await db.execute(stmt)
        return list(result.all())

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        **fields: Any,
    ) -> Application:
        """Insert a new Application owned by ``user_id``.

        Args:
            db: Async database session.
            user_id: Owner reference.
            **fields: Column values; must be updatable fields.

        Returns:
            Created Application with generated id and defaults populated.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        ApplicationRepository.validate_fields(fields)

        application = Application(
            user_id=user_id,
            timeline=[],
            attachments=[],
            **fields,
        )
        db.add(application)
        await db.flush()
        return application

    @staticmethod
    async def update(
        db: AsyncSession,
        application: Application,
        **fields: Any,
    ) -> Application:
        """Apply field-level changes to an Application.

        Only fields in _UPDATABLE_FIELDS are allowed. Unknown field names
        raise ValueError.

        Args:
            db: Async database session.
            application: Loaded Application to modify.
            **fields: Field names and values to update.

        Returns:
            The updated Application.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        ApplicationRepository.validate_fields(fields)

        for field, value in fields.items():
            setattr(application, field, value)

        await db.flush()
        return application

    @staticmethod
    async def add_timeline_entry(
        db: AsyncSession,
        application: Application,
        *,
        event: str,
        notes: str | None = None,
        date: datetime | None = None,
    ) -> TimelineEntry:
        """Append an entry to an application's timeline.

        Args:
            db: Async database session.
            application: Loaded Application (timeline eagerly loaded).
            event: Event text.
            notes: Optional free-text notes.
            date: Event time. Defaults to now.

        Returns:
            The inserted TimelineEntry.
        """
        entry = TimelineEntry(event=event, notes=notes, date=date or utcnow())
        application.timeline.append(entry)
        await db.flush()
        return entry

    @staticmethod
    async def add_attachment(
        db: AsyncSession,
        application: Application,
        *,
        name: str,
        url: str,
        upload_date: datetime | None = None,
    ) -> dict:
        """Append an attachment reference to an application.

        Args:
            db: Async database session.
            application: Loaded Application.
            name: Display name of the attachment.
            url: Where the attachment is stored.
            upload_date: Upload time. Defaults to now.

        Returns:
            The stored attachment dict.
        """
        attachment = {
            "name": name,
            "url": url,
            "upload_date": (upload_date or utcnow()).isoformat(),
        }
        application.attachments = [*application.attachments, attachment]
        await db.flush()
        return attachment

    @staticmethod
    async def delete(db: AsyncSession, application: Application) -> None:
        """Delete an Application and its timeline."""
        await db.delete(application)
        await db.flush()

    @staticmethod
    async def bulk_delete(
        db: AsyncSession,
        *,
        application_ids: list[uuid.UUID],
        user_id: uuid.UUID,
    ) -> int:
        """Delete the given applications that belong to ``user_id``.

        Ids that do not exist or belong to someone else are skipped, not
        reported.

        Args:
            db: Async database session.
            application_ids: Candidate ids.
            user_id: Owner filter.

        Returns:
            Number of applications actually deleted.
        """
        if not application_ids:
            return 0

        owned_ids = select(Application.id).where(
            Application.id.in_(application_ids),
            Application.user_id == user_id,
        )
        # Timeline rows first: not every backend enforces ON DELETE CASCADE.
        await db.execute(
            delete(TimelineEntry).where(TimelineEntry.application_id.in_(owned_ids))
        )
        result = cast(
            CursorResult[Any],
            await db.execute(
                delete(Application)
                .where(
                    Application.id.in_(application_ids),
                    Application.user_id == user_id,
                )
                .execution_options(synchronize_session="fetch")
            ),
        )
        row_count: int = result.rowcount
        return row_count
