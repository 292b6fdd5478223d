"""Identity context passed to every core operation.

The core never authenticates. ``interntrack.api.deps`` builds a Principal
from the verified request credentials and services only authorize on it.
"""

import uuid
from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    """Roles a principal can hold."""

    USER = "user"
    ADMIN = "admin"

    @classmethod
    def from_claim(cls, value: object) -> "Role":
        """Convert a token claim to a Role.

        Missing or unrecognized claims resolve to USER so a malformed token
        can never escalate privileges.

        Args:
            value: Raw ``role`` claim from the token payload.

        Returns:
            The matching Role, USER otherwise.
        """
        for role in cls:
            if role.value == value:
                return role
        return cls.USER


@dataclass(frozen=True)
class Principal:
    """The requesting user.

    Attributes:
        user_id: Id of the authenticated user.
        role: USER or ADMIN.
    """

    user_id: uuid.UUID
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def can_access(self, owner_id: uuid.UUID) -> bool:
        """Check whether this principal may read or mutate a record.

        Args:
            owner_id: The record's owner reference.

        Returns:
            True for the owner and for admins.
        """
        return self.is_admin or owner_id == self.user_id
