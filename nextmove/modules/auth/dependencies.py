"""JWT authentication dependency for FastAPI.

Tokens are issued by the hosted auth platform; this service only verifies
them. The user's id comes from ``sub`` and the marketplace role from the
``role`` claim (falling back to ``user_metadata.role``).
"""

import logging
import uuid
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from nextmove.config import settings
from nextmove.exceptions import ForbiddenException, UnauthorizedException
from nextmove.models.enums import ProfileRole

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """The caller, as described by a verified JWT."""

    id: uuid.UUID
    email: str | None
    role: ProfileRole

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN


def _decode_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_aud": False},
        )
    except JWTError as exc:
        logger.warning("JWT validation failed: %s", exc)
        raise UnauthorizedException("Invalid or expired token") from exc


def _resolve_role(payload: dict) -> ProfileRole:
    raw = (payload.get("user_metadata") or {}).get("role") or payload.get("role")
    try:
        return ProfileRole(raw)
    except ValueError:
        # The platform stamps "authenticated" on every signed-in user
        return ProfileRole.CLIENT


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthenticatedUser:
    """Extract and validate the current user from the Bearer token."""
    if credentials is None:
        raise UnauthorizedException("Authentication required")

    payload = _decode_token(credentials.credentials)

    try:
        user = AuthenticatedUser(
            id=uuid.UUID(payload["sub"]),
            email=payload.get("email"),
            role=_resolve_role(payload),
        )
    except (KeyError, ValueError) as exc:
        raise UnauthorizedException("Token is missing required claims") from exc

    request.state.user = user
    return user


def require_roles(user: AuthenticatedUser, *roles: ProfileRole) -> None:
    """Raise ForbiddenException unless ``user`` holds one of ``roles``."""
    if user.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise ForbiddenException(f"This action requires one of the roles: {allowed}")
