"""Application models - tracked applications and their timeline.

Application is the single tracked job/internship application. TimelineEntry
is the append-only status history attached to it; rows are only ever
inserted, ordered by their autoincrement id.
"""

import math
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from interntrack.models.base import Base, TimestampMixin, UTCDateTime, utcnow
from interntrack.services.application_status import (
    ApplicationStatus,
    JobType,
    Priority,
    Source,
)

COMPANY_MAX_LENGTH = 100
POSITION_MAX_LENGTH = 100
LOCATION_MAX_LENGTH = 100
NOTES_MAX_LENGTH = 1000

_SECONDS_PER_DAY = 60 * 60 * 24


def _in_constraint(column: str, values: list[str]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class Application(Base, TimestampMixin):
    """Tracked job/internship application.

    user_id is the owner reference. It is set at creation and never part of
    an update.
    """

    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )

    # Required
    company: Mapped[str] = mapped_column(String(COMPANY_MAX_LENGTH), nullable=False)
    position: Mapped[str] = mapped_column(String(POSITION_MAX_LENGTH), nullable=False)

    # Enumerations
    job_type: Mapped[str] = mapped_column(
        String(20),
        default=JobType.INTERNSHIP.value,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=ApplicationStatus.APPLIED.value,
        nullable=False,
    )
    priority: Mapped[str] = mapped_column(
        String(10),
        default=Priority.MEDIUM.value,
        nullable=False,
    )
    source: Mapped[str] = mapped_column(
        String(20),
        default=Source.OTHER.value,
        nullable=False,
    )

    # Optional details
    location: Mapped[str | None] = mapped_column(
        String(LOCATION_MAX_LENGTH), nullable=True
    )
    job_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(NOTES_MAX_LENGTH), nullable=True)
    interview_date: Mapped[datetime | None] = mapped_column(nullable=True)
    deadline: Mapped[datetime | None] = mapped_column(nullable=True)
    contact_person: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Salary (no min <= max invariant, no currency conversion)
    salary_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    salary_max: Mapped[float | None] = mapped_column(Float, nullable=True)
    salary_currency: Mapped[str] = mapped_column(
        String(10),
        default="USD",
        nullable=False,
    )

    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    # Append-only list of {"name", "url", "upload_date"} dicts. Reassign the
    # whole list when appending so the JSON column is flagged dirty.
    attachments: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    application_date: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            _in_constraint("status", ApplicationStatus.values()),
            name="ck_application_status",
        ),
        CheckConstraint(
            _in_constraint("job_type", JobType.values()),
            name="ck_application_job_type",
        ),
        CheckConstraint(
            _in_constraint("priority", Priority.values()),
            name="ck_application_priority",
        ),
        CheckConstraint(
            _in_constraint("source", Source.values()),
            name="ck_application_source",
        ),
        CheckConstraint(
            "salary_min IS NULL OR salary_min >= 0",
            name="ck_application_salary_min",
        ),
        CheckConstraint(
            "salary_max IS NULL OR salary_max >= 0",
            name="ck_application_salary_max",
        ),
        Index("ix_applications_user_status", "user_id", "status"),
        Index("ix_applications_user_application_date", "user_id", "application_date"),
        Index("ix_applications_user_created_at", "user_id", "created_at"),
    )

    timeline: Mapped[list["TimelineEntry"]] = relationship(
        "TimelineEntry",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="TimelineEntry.id",
        lazy="selectin",
        passive_deletes=True,
    )

    def days_since(self, now: datetime) -> int:
        """Whole days elapsed between application_date and ``now``."""
        elapsed = (now - self.application_date).total_seconds()
        return math.floor(elapsed / _SECONDS_PER_DAY)

    @property
    def days_since_application(self) -> int:
        return self.days_since(utcnow())


class TimelineEntry(Base):
    """Event in an application's status history.

    Entries are never edited or removed; the autoincrement id records the
    append order.
    """

    __tablename__ = "timeline_entries"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    application: Mapped["Application"] = relationship(
        "Application",
        back_populates="timeline",
    )
