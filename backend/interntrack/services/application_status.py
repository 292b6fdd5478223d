"""Application enumerations and status transitions.

Status is a plain enumerated value with an open transition function: every
status may move to every other status, and none is terminal. Workflow
guidance (e.g. discouraging accepted -> applied) belongs to the client.

Enum values match the database check constraints on the applications table.
"""

from dataclasses import dataclass
from enum import Enum

from interntrack.core.errors import ValidationError


class _ValueEnum(Enum):
    """Enum with lookup helpers shared by every application enumeration."""

    @classmethod
    def from_string(cls, value: str):
        """Convert a stored or submitted string to the enum member.

        Args:
            value: Raw string value.

        Returns:
            The corresponding enum member.

        Raises:
            ValueError: If the string doesn't match any member.
        """
        for member in cls:
            if member.value == value:
                return member
        valid = [m.value for m in cls]
        raise ValueError(f"Invalid {cls.__name__}: '{value}'. Valid: {valid}")

    @classmethod
    def values(cls) -> list[str]:
        return [m.value for m in cls]


class ApplicationStatus(_ValueEnum):
    """Lifecycle status of a tracked application."""

    APPLIED = "applied"
    INTERVIEW = "interview"
    OFFER = "offer"
    REJECTED = "rejected"
    ACCEPTED = "accepted"
    WITHDRAWN = "withdrawn"


class JobType(_ValueEnum):
    """Kind of position applied for."""

    INTERNSHIP = "internship"
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    FREELANCE = "freelance"


class Priority(_ValueEnum):
    """User-assigned priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Source(_ValueEnum):
    """Where the user found the posting."""

    LINKEDIN = "linkedin"
    INDEED = "indeed"
    COMPANY_WEBSITE = "company-website"
    REFERRAL = "referral"
    OTHER = "other"


# Outcomes counted as a success (offer received or accepted).
OFFER_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {ApplicationStatus.OFFER, ApplicationStatus.ACCEPTED}
)

# Statuses that mean the employer responded. WITHDRAWN is deliberately in
# neither this set nor NO_RESPONSE_STATUSES.
RESPONDED_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {
        ApplicationStatus.INTERVIEW,
        ApplicationStatus.OFFER,
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.REJECTED,
    }
)

NO_RESPONSE_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {ApplicationStatus.APPLIED}
)


@dataclass(frozen=True)
class StatusTransition:
    """A status change to be recorded on the timeline.

    Attributes:
        previous: Status before the change.
        new: Status after the change.
    """

    previous: ApplicationStatus
    new: ApplicationStatus

    @property
    def event(self) -> str:
        """Timeline event text for this transition."""
        return f"Status changed from {self.previous.value} to {self.new.value}"


def parse_status(value: str | ApplicationStatus) -> ApplicationStatus:
    """Validate a requested status.

    Args:
        value: Status string or enum member.

    Returns:
        The ApplicationStatus member.

    Raises:
        ValidationError: If the value is not a known status.
    """
    if isinstance(value, ApplicationStatus):
        return value
    try:
        return ApplicationStatus.from_string(value)
    except ValueError as exc:
        raise ValidationError(
            f"Invalid status '{value}'",
            details=[{"field": "status", "allowed": ApplicationStatus.values()}],
        ) from exc


def plan_transition(
    current: ApplicationStatus,
    target: ApplicationStatus,
) -> StatusTransition | None:
    """Decide whether moving to ``target`` is a real transition.

    Any status may move to any other. Moving to the current status is a
    no-op and produces no timeline entry.

    Args:
        current: The application's current status.
        target: The requested status.

    Returns:
        StatusTransition when the status changes, None for a no-op.
    """
    if current == target:
        return None
    return StatusTransition(previous=current, new=target)
