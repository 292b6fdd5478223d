"""API error classes.

Every error carries a machine-readable code, a human message and the HTTP
status the exception handlers in ``interntrack.main`` render it with.
Services and repositories raise these directly; nothing downstream swallows
them.
"""


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400).

    Missing or invalid required field, out-of-range enum value, string
    length exceeded, or a malformed bulk request.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """Authentication required (401).

    Use when no valid auth credentials provided.
    """

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


def _not_found_message(resource: str, resource_id: str | None) -> str:
    if resource_id:
        return f"{resource} with id '{resource_id}' not found"
    return f"{resource} not found"


class NotFoundError(APIError):
    """Resource not found (404).

    Use when the requested id has no matching record.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        super().__init__(
            code="NOT_FOUND",
            message=_not_found_message(resource, resource_id),
            status_code=404,
        )


class AuthorizationError(APIError):
    """Caller neither owns the record nor holds the admin role.

    Rendered exactly like NotFoundError (same status, code and message) so a
    client cannot tell a foreign record from an absent one. Kept as its own
    type so services and tests can still distinguish the two cases.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        super().__init__(
            code="NOT_FOUND",
            message=_not_found_message(resource, resource_id),
            status_code=404,
        )


class InternalError(APIError):
    """Unexpected server error (500).

    Use for unhandled exceptions. Never expose stack traces to clients.
    """

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=500,
        )
