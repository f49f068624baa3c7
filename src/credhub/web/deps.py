"""Request dependencies: bearer-token auth and role checks."""

from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from credhub.core.auth import (
    ROLE_FACULTY,
    ROLE_STUDENT,
    InvalidTokenError,
    decode_access_token,
)
from credhub.db.users_repository import UserRecord, get_user_by_id

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def user_from_token(token: str | None) -> UserRecord:
    """Resolve a bearer token to its user.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or its user is gone
    """
    if not token:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_access_token(token)
    except InvalidTokenError:
        raise _unauthorized("Could not validate credentials")

    user = get_user_by_id(payload["sub"])
    if user is None:
        raise _unauthorized("User no longer exists")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> UserRecord:
    return user_from_token(credentials.credentials if credentials else None)


def _require_role(user: UserRecord, role: str) -> UserRecord:
    if user.role != role:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"This action requires the '{role}' role",
        )
    return user


async def require_student(user: UserRecord = Depends(get_current_user)) -> UserRecord:
    return _require_role(user, ROLE_STUDENT)


async def require_faculty(user: UserRecord = Depends(get_current_user)) -> UserRecord:
    return _require_role(user, ROLE_FACULTY)
