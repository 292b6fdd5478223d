"""Application lifecycle: create, authorize, mutate and delete records.

Every single-record operation goes through ``_get_authorized_application``:

- absent id                  -> NotFoundError
- foreign record, non-admin  -> AuthorizationError (rendered like NotFoundError)
- owner or admin             -> the record

Status changes append exactly one timeline entry each; setting the current
status again is a no-op. There is no transition graph (see
``application_status.plan_transition``).

Functions flush but never commit. The caller owns the transaction.
"""

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from interntrack.core.errors import AuthorizationError, NotFoundError, ValidationError
from interntrack.core.identity import Principal
from interntrack.models.application import Application
from interntrack.models.base import utcnow
from interntrack.repositories.application_repository import ApplicationRepository
from interntrack.services.application_status import (
    ApplicationStatus,
    parse_status,
    plan_transition,
)

logger = logging.getLogger(__name__)

_RESOURCE = "Application"


@dataclass(frozen=True)
class BulkDeleteResult:
    """Outcome of a bulk delete.

    Attributes:
        requested: Number of distinct well-formed ids submitted.
        deleted_count: Number of records actually removed.
    """

    requested: int
    deleted_count: int


# =============================================================================
# Helpers
# =============================================================================


async def _get_authorized_application(
    db: AsyncSession,
    application_id: uuid.UUID,
    principal: Principal,
) -> Application:
    """Fetch an application the principal may access.

    Args:
        db: Async database session.
        application_id: Requested id.
        principal: Requesting user.

    Returns:
        The Application.

    Raises:
        NotFoundError: If no record has this id.
        AuthorizationError: If the caller is neither owner nor admin.
    """
    application = await ApplicationRepository.get_by_id(db, application_id)
    if application is None:
        raise NotFoundError(_RESOURCE, str(application_id))
    if not principal.can_access(application.user_id):
        logger.warning(
            "Denied access to application: user=%s application=%s",
            principal.user_id,
            application_id,
        )
        raise AuthorizationError(_RESOURCE, str(application_id))
    return application


async def _record_status_change(
    db: AsyncSession,
    application: Application,
    target: ApplicationStatus,
    notes: str | None,
) -> bool:
    """Append the timeline entry for a status change and set the status.

    Returns:
        True if the status changed, False for a no-op.
    """
    current = ApplicationStatus.from_string(application.status)
    transition = plan_transition(current, target)
    if transition is None:
        return False

    await ApplicationRepository.add_timeline_entry(
        db,
        application,
        event=transition.event,
        notes=notes or "",
        date=utcnow(),
    )
    application.status = transition.new.value
    logger.info(
        "Application status changed: application=%s from=%s to=%s",
        application.id,
        transition.previous.value,
        transition.new.value,
    )
    return True


# =============================================================================
# Public API
# =============================================================================


async def get_application(
    db: AsyncSession,
    application_id: uuid.UUID,
    principal: Principal,
) -> Application:
    """Fetch a single application for its owner or an admin.

    Raises:
        NotFoundError: If no record has this id.
        AuthorizationError: If the caller is neither owner nor admin.
    """
    return await _get_authorized_application(db, application_id, principal)


async def create_application(
    db: AsyncSession,
    principal: Principal,
    fields: dict[str, Any],
) -> Application:
    """Create an application owned by the requesting principal.

    The owner is always the principal; ``fields`` cannot carry an owner.
    Creation writes no timeline entry.

    Args:
        db: Async database session.
        principal: Requesting user (becomes the owner).
        fields: Validated column values.

    Returns:
        The created Application.
    """
    application = await ApplicationRepository.create(
        db, user_id=principal.user_id, **fields
    )
    logger.info(
        "Application created: user=%s application=%s",
        principal.user_id,
        application.id,
    )
    return application


async def change_status(
    db: AsyncSession,
    application_id: uuid.UUID,
    principal: Principal,
    new_status: str | ApplicationStatus,
    notes: str | None = None,
) -> Application:
    """Move an application to a new status.

    Appends ``"Status changed from <old> to <new>"`` with the given notes
    (empty string when omitted). Calling it again with the same status
    changes nothing.

    Args:
        db: Async database session.
        application_id: Target record.
        principal: Requesting user.
        new_status: Requested status.
        notes: Optional notes stored on the timeline entry.

    Returns:
        The (possibly unchanged) Application.

    Raises:
        ValidationError: If new_status is not a known status.
        NotFoundError: If no record has this id.
        AuthorizationError: If the caller is neither owner nor admin.
    """
    target = parse_status(new_status)
    application = await _get_authorized_application(db, application_id, principal)

    if await _record_status_change(db, application, target, notes):
        await db.flush()
    return application


async def update_application(
    db: AsyncSession,
    application_id: uuid.UUID,
    principal: Principal,
    changes: dict[str, Any],
    status_notes: str | None = None,
) -> Application:
    """Apply a partial update to an application.

    When ``status`` is among the changes and differs from the current value,
    the timeline entry is appended before the other fields are written.

    Args:
        db: Async database session.
        application_id: Target record.
        principal: Requesting user.
        changes: Field names and validated values.
        status_notes: Notes for the timeline entry if status changes.

    Returns:
        The updated Application.

    Raises:
        ValidationError: If a status value is invalid or a field is unknown.
        NotFoundError: If no record has this id.
        AuthorizationError: If the caller is neither owner nor admin.
    """
    changes = dict(changes)
    try:
        ApplicationRepository.validate_fields(changes)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    target = parse_status(changes.pop("status")) if "status" in changes else None

    application = await _get_authorized_application(db, application_id, principal)

    if target is not None:
        await _record_status_change(db, application, target, status_notes)

    return await ApplicationRepository.update(db, application, **changes)


async def add_attachment(
    db: AsyncSession,
    application_id: uuid.UUID,
    principal: Principal,
    *,
    name: str,
    url: str,
) -> dict:
    """Append an attachment reference to an application.

    Raises:
        NotFoundError: If no record has this id.
        AuthorizationError: If the caller is neither owner nor admin.
    """
    application = await _get_authorized_application(db, application_id, principal)
    return await ApplicationRepository.add_attachment(
        db, application, name=name, url=url
    )


async def delete_application(
    db: AsyncSession,
    application_id: uuid.UUID,
    principal: Principal,
) -> None:
    """Delete a single application and its timeline.

    Raises:
        NotFoundError: If no record has this id.
        AuthorizationError: If the caller is neither owner nor admin.
    """
    application = await _get_authorized_application(db, application_id, principal)
    await ApplicationRepository.delete(db, application)
    logger.info(
        "Application deleted: user=%s application=%s",
        principal.user_id,
        application_id,
    )


def _parse_ids(raw_ids: Sequence[uuid.UUID | str]) -> list[uuid.UUID]:
    """Distinct UUIDs in input order; malformed strings are dropped."""
    parsed: list[uuid.UUID] = []
    for raw in raw_ids:
        if isinstance(raw, uuid.UUID):
            parsed.append(raw)
            continue
        try:
            parsed.append(uuid.UUID(raw))
        except (ValueError, TypeError, AttributeError):
            continue
    return list(dict.fromkeys(parsed))


async def bulk_delete(
    db: AsyncSession,
    principal: Principal,
    application_ids: Sequence[uuid.UUID | str],
) -> BulkDeleteResult:
    """Delete every listed application the principal owns.

    Ids that are malformed, unknown or owned by someone else are skipped
    silently. Bulk delete is owner-scoped even for admins.

    Args:
        db: Async database session.
        principal: Requesting user.
        application_ids: Candidate ids (UUIDs or their string form).

    Returns:
        BulkDeleteResult with the number actually deleted.

    Raises:
        ValidationError: If no ids were provided.
    """
    if not application_ids:
        raise ValidationError("Please provide a non-empty list of application ids")

    unique_ids = _parse_ids(application_ids)
    deleted = await ApplicationRepository.bulk_delete(
        db, application_ids=unique_ids, user_id=principal.user_id
    )
    logger.info(
        "Bulk delete: user=%s requested=%d deleted=%d",
        principal.user_id,
        len(unique_ids),
        deleted,
    )
    return BulkDeleteResult(requested=len(unique_ids), deleted_count=deleted)
