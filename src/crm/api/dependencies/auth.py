"""Authentication dependencies."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from src.crm.api.dependencies.db import DBSession
from src.crm.core.security import decode_token
from src.crm.core.security.crypto import ACCESS_TOKEN_TYPE
from src.crm.models.public import User

AUTH_REQUIRED = "Authentication required"


def _unauthorized(detail: str = AUTH_REQUIRED) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_payload(
    authorization: Annotated[str | None, Header()] = None,
) -> dict[str, Any]:
    """Decode the bearer access token. Anything unusable is a 401."""
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized()

    payload = decode_token(authorization[7:])
    if payload is None or payload.get("type") != ACCESS_TOKEN_TYPE:
        raise _unauthorized()
    if not payload.get("sub"):
        raise _unauthorized()
    return payload


TokenPayload = Annotated[dict[str, Any], Depends(get_token_payload)]


async def load_active_user(session: DBSession, payload: dict[str, Any]) -> User:
    try:
        user_id = UUID(str(payload["sub"]))
    except ValueError as e:
        raise _unauthorized() from e

    user = await session.get(User, user_id)
    if user is None or not user.is_active:
        raise _unauthorized("User not found or inactive")
    return user


async def get_authenticated_user(session: DBSession, payload: TokenPayload) -> User:
    """Validate access token and return user (no tenant context required)."""
    return await load_active_user(session, payload)


AuthenticatedUser = Annotated[User, Depends(get_authenticated_user)]


async def require_superuser(user: AuthenticatedUser) -> User:
    """Require the current user to be a superuser.

    Used for platform-wide admin endpoints. Does not require tenant context.
    """
    if not user.is_superuser:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Superuser privileges required",
        )
    return user


SuperUser = Annotated[User, Depends(require_superuser)]
