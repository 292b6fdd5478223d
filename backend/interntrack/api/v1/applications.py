"""Applications API router.

Application CRUD, status changes, the read-only timeline, attachments and
bulk delete. Single-record routes go through the lifecycle service, which
answers 404 both for absent ids and for records the caller may not access.
The list route is owner-scoped for every role.
"""

import uuid
from datetime import UTC, datetime
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    StringConstraints,
    field_validator,
)

from interntrack.api.deps import CurrentPrincipal, CurrentUserId, DbSession
from interntrack.core.errors import ValidationError
from interntrack.core.filtering import (
    ApplicationFilters,
    SortOption,
    application_filters,
    sort_param,
)
from interntrack.core.pagination import PaginationParams, pagination_params
from interntrack.core.responses import (
    DataResponse,
    ErrorDetail,
    ErrorResponse,
    ListResponse,
    PaginationMeta,
)
from interntrack.models.application import (
    COMPANY_MAX_LENGTH,
    LOCATION_MAX_LENGTH,
    NOTES_MAX_LENGTH,
    POSITION_MAX_LENGTH,
    Application,
    TimelineEntry,
)
from interntrack.schemas.bulk import BulkDeleteRequest, BulkDeleteResult
from interntrack.services import application_lifecycle, application_query
from interntrack.services.application_status import (
    ApplicationStatus,
    JobType,
    Priority,
    Source,
)

logger = structlog.get_logger()

_MAX_TEXT_LENGTH = 2000
"""Safety bound on free-text fields without a model limit."""

_MAX_TAGS = 50
_MAX_TAG_LENGTH = 50

Company = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=1, max_length=COMPANY_MAX_LENGTH
    ),
]
Position = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=1, max_length=POSITION_MAX_LENGTH
    ),
]
Location = Annotated[
    str, StringConstraints(strip_whitespace=True, max_length=LOCATION_MAX_LENGTH)
]
Notes = Annotated[str, StringConstraints(max_length=NOTES_MAX_LENGTH)]

router = APIRouter()


# =============================================================================
# Request/Response Schemas
# =============================================================================


class SalaryRequest(BaseModel):
    """Salary range. min and max are independent; no currency conversion."""

    model_config = ConfigDict(extra="forbid")

    min: float | None = Field(default=None, ge=0)
    max: float | None = Field(default=None, ge=0)
    currency: str = Field(default="USD", min_length=1, max_length=10)


class ContactPersonRequest(BaseModel):
    """Recruiter or hiring contact for the application."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=254)
    phone: str | None = Field(default=None, max_length=50)


def _normalize_tags(tags: list[str] | None) -> list[str] | None:
    """Trim tags, drop blanks and duplicates, keep first-seen order."""
    if tags is None:
        return None
    cleaned = (t.strip() for t in tags)
    return list(dict.fromkeys(t for t in cleaned if t))


class _ApplicationFields(BaseModel):
    """Fields shared by create and update requests."""

    model_config = ConfigDict(extra="forbid")

    location: Location | None = None
    job_url: HttpUrl | None = None
    notes: Notes | None = None
    interview_date: datetime | None = None
    deadline: datetime | None = None
    contact_person: ContactPersonRequest | None = None
    salary: SalaryRequest | None = None
    tags: list[Annotated[str, StringConstraints(max_length=_MAX_TAG_LENGTH)]] | None = (
        Field(default=None, max_length=_MAX_TAGS)
    )
    application_date: datetime | None = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tags(v)

    @field_validator("application_date", "interview_date", "deadline")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Naive timestamps are taken as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @staticmethod
    def _to_fields(data: dict[str, Any]) -> dict[str, Any]:
        """Flatten dumped request data into Application column values.

        Args:
            data: Output of model_dump for the fields to write.

        Returns:
            Dict of column name to value with enums as their string values.

        Raises:
            ValidationError: If a required or enum field is explicitly null.
        """
        fields: dict[str, Any] = {}
        for name, value in data.items():
            if name == "salary":
                salary = value or {}
                fields["salary_min"] = salary.get("min")
                fields["salary_max"] = salary.get("max")
                fields["salary_currency"] = salary.get("currency") or "USD"
            elif name == "job_url":
                fields[name] = str(value) if value is not None else None
            elif name in {"job_type", "status", "priority", "source"}:
                if value is None:
                    raise ValidationError(
                        f"{name} cannot be null",
                        details=[{"field": name}],
                    )
                fields[name] = value.value
            elif name in {"company", "position", "tags", "application_date"}:
                if value is None:
                    raise ValidationError(
                        f"{name} cannot be null",
                        details=[{"field": name}],
                    )
                fields[name] = value
            else:
                fields[name] = value
        return fields


class CreateApplicationRequest(_ApplicationFields):
    """Request body for creating an application.

    Only company and position are required; enums fall back to their
    defaults.
    """

    company: Company
    position: Position
    job_type: JobType = JobType.INTERNSHIP
    status: ApplicationStatus = ApplicationStatus.APPLIED
    priority: Priority = Priority.MEDIUM
    source: Source = Source.OTHER

    def to_fields(self) -> dict[str, Any]:
        """Column values for a new record; omitted fields keep model defaults."""
        fields = self._to_fields(self.model_dump(exclude_none=True))
        fields.setdefault("tags", [])
        return fields


class UpdateApplicationRequest(_ApplicationFields):
    """Request body for updating an application.

    All fields optional. Only provided fields are updated. When status
    changes, ``status_notes`` is stored on the new timeline entry.
    """

    company: Company | None = None
    position: Position | None = None
    job_type: JobType | None = None
    status: ApplicationStatus | None = None
    priority: Priority | None = None
    source: Source | None = None
    status_notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)

    def to_fields(self) -> dict[str, Any]:
        """Column values for the fields the client actually sent."""
        return self._to_fields(
            self.model_dump(exclude_unset=True, exclude={"status_notes"})
        )


class StatusChangeRequest(BaseModel):
    """Request body for PATCH /applications/{id}/status."""

    model_config = ConfigDict(extra="forbid")

    status: ApplicationStatus
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)


class AttachmentRequest(BaseModel):
    """Request body for adding an attachment reference."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    url: HttpUrl


# =============================================================================
# Helper Functions
# =============================================================================


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _timeline_entry_to_dict(entry: TimelineEntry) -> dict:
    """Convert TimelineEntry model to API response dict."""
    return {
        "id": entry.id,
        "event": entry.event,
        "date": entry.date.isoformat(),
        "notes": entry.notes,
    }


def _application_to_dict(app: Application) -> dict:
    """Convert Application model to API response dict.

    Args:
        app: The Application model instance.

    Returns:
        Dict with application data for API response.
    """
    return {
        "id": str(app.id),
        "user_id": str(app.user_id),
        "company": app.company,
        "position": app.position,
        "location": app.location,
        "job_type": app.job_type,
        "status": app.status,
        "priority": app.priority,
        "source": app.source,
        "salary": {
            "min": app.salary_min,
            "max": app.salary_max,
            "currency": app.salary_currency,
        },
        "application_date": app.application_date.isoformat(),
        "interview_date": _iso(app.interview_date),
        "deadline": _iso(app.deadline),
        "contact_person": app.contact_person,
        "job_url": app.job_url,
        "notes": app.notes,
        "tags": list(app.tags or []),
        "attachments": list(app.attachments or []),
        "timeline": [_timeline_entry_to_dict(e) for e in app.timeline],
        "days_since_application": app.days_since_application,
        "created_at": app.created_at.isoformat(),
        "updated_at": app.updated_at.isoformat(),
    }


# =============================================================================
# Applications CRUD
# =============================================================================


@router.get("")
async def list_applications(
    user_id: CurrentUserId,
    db: DbSession,
    filters: Annotated[ApplicationFilters, Depends(application_filters)],
    sort: Annotated[SortOption, Depends(sort_param)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
) -> ListResponse[dict]:
    """List applications for current user.

    Supports exact filters on status, job_type and priority, a search over
    company/position/location, a fixed set of sort options and pagination.
    Admins also see only their own records here.
    """
    page = await application_query.list_applications(
        db,
        user_id,
        filters=filters,
        sort=sort,
        page=pagination.page,
        per_page=pagination.per_page,
    )
    return ListResponse(
        data=[_application_to_dict(a) for a in page.items],
        meta=PaginationMeta(total=page.total, page=page.page, per_page=page.per_page),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_application(
    request: CreateApplicationRequest,
    principal: CurrentPrincipal,
    db: DbSession,
) -> DataResponse[dict]:
    """Create a new application owned by the current user."""
    app = await application_lifecycle.create_application(
        db, principal, request.to_fields()
    )
    await db.commit()
    return DataResponse(data=_application_to_dict(app))


@router.delete("/bulk")
async def bulk_delete_applications(
    request: BulkDeleteRequest,
    principal: CurrentPrincipal,
    db: DbSession,
) -> DataResponse[BulkDeleteResult]:
    """Bulk delete applications owned by the current user.

    Ids that are malformed, unknown or owned by another user are skipped;
    the response reports how many were actually deleted.
    """
    result = await application_lifecycle.bulk_delete(db, principal, request.ids)
    await db.commit()
    logger.info(
        "Bulk delete completed",
        requested=result.requested,
        deleted=result.deleted_count,
    )
    return DataResponse(data=BulkDeleteResult(deleted_count=result.deleted_count))


@router.get("/{application_id}")
async def get_application(
    application_id: uuid.UUID,
    principal: CurrentPrincipal,
    db: DbSession,
) -> DataResponse[dict]:
    """Get an application by ID (owner or admin).

    Raises:
        NotFoundError: If not found or not accessible.
    """
    app = await application_lifecycle.get_application(db, application_id, principal)
    return DataResponse(data=_application_to_dict(app))


@router.put("/{application_id}")
async def update_application(
    application_id: uuid.UUID,
    request: UpdateApplicationRequest,
    principal: CurrentPrincipal,
    db: DbSession,
) -> DataResponse[dict]:
    """Update an application's fields.

    A status change among the fields appends a timeline entry.
    """
    app = await application_lifecycle.update_application(
        db,
        application_id,
        principal,
        request.to_fields(),
        status_notes=request.status_notes,
    )
    await db.commit()
    return DataResponse(data=_application_to_dict(app))


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(
    application_id: uuid.UUID,
    principal: CurrentPrincipal,
    db: DbSession,
) -> Response:
    """Delete an application and its timeline."""
    await application_lifecycle.delete_application(db, application_id, principal)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{application_id}/status")
async def change_application_status(
    application_id: uuid.UUID,
    request: StatusChangeRequest,
    principal: CurrentPrincipal,
    db: DbSession,
) -> DataResponse[dict]:
    """Change an application's status.

    Appends one timeline entry when the status actually changes; repeating
    the current status is a no-op.
    """
    app = await application_lifecycle.change_status(
        db, application_id, principal, request.status, notes=request.notes
    )
    await db.commit()
    return DataResponse(data=_application_to_dict(app))


# =============================================================================
# Timeline (nested, append-only)
# =============================================================================


@router.get("/{application_id}/timeline")
async def list_timeline(
    application_id: uuid.UUID,
    principal: CurrentPrincipal,
    db: DbSession,
) -> ListResponse[dict]:
    """List an application's timeline entries in the order they were added."""
    app = await application_lifecycle.get_application(db, application_id, principal)
    entries = [_timeline_entry_to_dict(e) for e in app.timeline]
    return ListResponse(
        data=entries,
        meta=PaginationMeta(total=len(entries), page=1, per_page=len(entries) or 20),
    )


_TIMELINE_IMMUTABLE_RESPONSE = ErrorResponse(
    error=ErrorDetail(
        code="METHOD_NOT_ALLOWED",
        message="Timeline entries are immutable. Change the status instead.",
    ),
)


@router.patch("/{application_id}/timeline/{entry_id}")
async def update_timeline_entry(
    application_id: uuid.UUID,  # noqa: ARG001
    entry_id: int,  # noqa: ARG001
    _principal: CurrentPrincipal,
) -> JSONResponse:
    """Reject timeline entry updates.

    Returns:
        405 Method Not Allowed with error envelope.
    """
    return JSONResponse(
        status_code=405,
        content=_TIMELINE_IMMUTABLE_RESPONSE.model_dump(),
    )


@router.delete("/{application_id}/timeline/{entry_id}")
async def delete_timeline_entry(
    application_id: uuid.UUID,  # noqa: ARG001
    entry_id: int,  # noqa: ARG001
    _principal: CurrentPrincipal,
) -> JSONResponse:
    """Reject timeline entry deletion.

    Returns:
        405 Method Not Allowed with error envelope.
    """
    return JSONResponse(
        status_code=405,
        content=_TIMELINE_IMMUTABLE_RESPONSE.model_dump(),
    )


# =============================================================================
# Attachments (nested, append-only)
# =============================================================================


@router.post("/{application_id}/attachments", status_code=status.HTTP_201_CREATED)
async def add_attachment(
    application_id: uuid.UUID,
    request: AttachmentRequest,
    principal: CurrentPrincipal,
    db: DbSession,
) -> DataResponse[dict]:
    """Append an attachment reference to an application."""
    attachment = await application_lifecycle.add_attachment(
        db, application_id, principal, name=request.name, url=str(request.url)
    )
    await db.commit()
    return DataResponse(data=attachment)
