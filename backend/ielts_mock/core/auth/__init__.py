"""
FastAPI authentication and authorization dependencies.
"""
from typing import Callable, Coroutine, Any

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ielts_mock.models import get_db, User, UserRole
from ielts_mock.core.error_responses import (
    ErrorMessages,
    raise_forbidden,
    raise_unauthorized,
)
from .security import create_access_token, decode_token, verify_token_type

# HTTP Bearer token scheme
security = HTTPBearer()

__all__ = [
    "create_access_token",
    "get_current_user",
    "require_roles",
    "security",
]


def _decode_and_validate_token(token: str) -> int:
    """
    Decode and validate an access token, returning the user_id.

    Raises:
        HTTPException: 401 if token is invalid, wrong type, or missing user_id
    """
    payload = decode_token(token)
    if payload is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    if not verify_token_type(payload, "access"):
        raise_unauthorized(ErrorMessages.INVALID_TOKEN_TYPE)

    user_id = payload.get("user_id")
    if user_id is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN_PAYLOAD)

    return int(user_id)


async def _get_user_or_401(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise_unauthorized(ErrorMessages.USER_NOT_FOUND_AUTH)
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get the current authenticated user from the bearer token.

    The role is read from the user row, not from the token, so a role change
    takes effect without reissuing tokens.

    Raises:
        HTTPException: 401 if token is invalid or user not found
    """
    user_id = _decode_and_validate_token(credentials.credentials)
    return await _get_user_or_401(db, user_id)


def require_roles(
    *roles: UserRole,
) -> Callable[..., Coroutine[Any, Any, User]]:
    """
    Build a dependency that admits only users holding one of roles.

    Usage:
        @router.put("/...")
        async def evaluate(
            current_user: User = Depends(
                require_roles(UserRole.INSTRUCTOR, UserRole.ADMIN)
            ),
        ): ...
    """
    allowed = frozenset(roles)

    async def _dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise_forbidden(ErrorMessages.INSUFFICIENT_ROLE)
        return current_user

    return _dependency
