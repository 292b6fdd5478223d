"""Shared dependencies for API endpoints.

Builds the identity context for every request. Local-first mode uses
DEFAULT_USER_ID; hosted mode verifies an HS256 JWT from the session cookie
or an ``Authorization: Bearer`` header. Token issuance lives elsewhere.
"""

import uuid
from typing import Annotated

import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from interntrack.core.config import settings
from interntrack.core.database import get_db
from interntrack.core.errors import UnauthorizedError
from interntrack.core.identity import Principal, Role

_BEARER_PREFIX = "bearer "


# Generic 401, intentionally vague to prevent information leakage.
# Security: Never include specifics about WHY auth failed (expired, bad sig, etc.).
def _unauthorized() -> UnauthorizedError:
    return UnauthorizedError()


def _read_token(request: Request) -> str | None:
    """Session cookie first, then a bearer Authorization header."""
    token = request.cookies.get(settings.auth_cookie_name)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith(_BEARER_PREFIX):
        return header[len(_BEARER_PREFIX) :].strip() or None
    return None


async def get_current_principal(request: Request) -> Principal:
    """Get the requesting principal from auth context.

    Validation steps (hosted mode):
    1. Read JWT from cookie or bearer header
    2. Decode + verify signature (HS256)
    3. Verify exp, aud, iss claims
    4. Extract sub as UUID and the optional role claim

    Args:
        request: HTTP request (injected by FastAPI).

    Returns:
        Principal for the authenticated user.

    Raises:
        UnauthorizedError: 401 for any auth failure.
    """
    if not settings.auth_enabled:
        # Local-first mode: use DEFAULT_USER_ID from environment
        if settings.default_user_id is None:
            raise _unauthorized()
        return Principal(user_id=settings.default_user_id)

    token = _read_token(request)
    if not token:
        raise _unauthorized()

    try:
        payload = jwt.decode(
            token,
            settings.auth_secret.get_secret_value(),
            algorithms=["HS256"],
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
        )
        user_id = uuid.UUID(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError, TypeError) as exc:
        raise _unauthorized() from exc

    return Principal(user_id=user_id, role=Role.from_claim(payload.get("role")))


async def get_current_user_id(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> uuid.UUID:
    """Get just the user id, for owner-scoped endpoints."""
    return principal.user_id


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
CurrentUserId = Annotated[uuid.UUID, Depends(get_current_user_id)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
