"""
Request dependencies: session JWTs, the current user, and ownership checks.

Every row belongs to one user. Handlers never trust a user id from the
request; they take `CurrentUser` and scope every query by its id.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends, Header, HTTPException, status
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db.models import User
from app.db.session import get_db

settings = get_settings()

ACCESS_TOKEN_COOKIE = "access_token"
TOKEN_TYPE = "access"


# =============================================================================
# JWT
# =============================================================================


def create_access_token(user_id: UUID) -> str:
    """Sign a session token for `user_id`."""
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "typ": TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.jwt_expire_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID | None:
    """User id from a valid session token, or None if it is bad, expired, or not a session token."""
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None

    if claims.get("typ") != TOKEN_TYPE:
        return None
    try:
        return UUID(claims["sub"])
    except (KeyError, TypeError, ValueError):
        return None


# =============================================================================
# CURRENT USER
# =============================================================================


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_from_request(
    authorization: Annotated[str | None, Header()] = None,
    access_token: Annotated[str | None, Cookie(alias=ACCESS_TOKEN_COOKIE)] = None,
) -> str:
    """Session token from the `Authorization: Bearer` header, falling back to the cookie."""
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()

    if access_token:
        return access_token

    raise _unauthorized("Not authenticated")


async def get_current_user(
    token: Annotated[str, Depends(get_token_from_request)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """The user named by the session token; 401 if the token is invalid or the user is gone."""
    user_id = decode_access_token(token)
    user = await db.get(User, user_id) if user_id is not None else None
    if user is None:
        raise _unauthorized("Could not validate credentials")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]


# =============================================================================
# OWNERSHIP
# =============================================================================


def require_self(user_id: UUID | None, current_user: User) -> None:
    """
    Reject a body `userId` that names someone other than the caller.

    Rows are always owned by the authenticated user; the field is accepted
    only so older clients that send it keep working.
    """
    if user_id is not None and user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to act for another user",
        )


def require_own_storage_key(file_path: str, current_user: User) -> None:
    """Storage keys are namespaced as '<user_id>/...'; reject anyone else's and any '..' segment."""
    if not file_path.startswith(f"{current_user.id}/") or ".." in file_path.split("/"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to access this file",
        )


async def get_user_resource_or_404(db: AsyncSession, model: type, resource_id: UUID, user_id: UUID):
    """
    Fetch one of the caller's rows by id.

    A row owned by another user is indistinguishable from a missing one (404).
    """
    result = await db.execute(
        select(model).where(model.id == resource_id, model.user_id == user_id)
    )
    resource = result.scalar_one_or_none()
    if resource is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{model.__name__} not found",
        )
    return resource
