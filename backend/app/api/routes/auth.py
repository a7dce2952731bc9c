"""
Sign-in routes.

- POST /auth/google: trade a Google id_token for a session JWT
- POST /auth/logout: clear the session cookie
- GET /auth/me: the signed-in user's profile

The JWT is returned in the body and as an HttpOnly cookie; either works
for later requests.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import NamedTuple

from fastapi import APIRouter, HTTPException, Response, status
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.deps import ACCESS_TOKEN_COOKIE, CurrentUser, DbSession, create_access_token
from app.config import get_settings
from app.db.models import AuthIdentity, User
from app.schemas.auth import GoogleAuthRequest, TokenResponse
from app.schemas.user import UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()

GOOGLE_PROVIDER = "google"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class GoogleIdentity(NamedTuple):
    subject: str
    email: str | None  # Only set when Google marked it verified
    name: str


def _verify_google_token(token: str) -> GoogleIdentity:
    """Check signature, expiry, audience and issuer. Blocking (fetches Google's certs)."""
    claims = google_id_token.verify_oauth2_token(
        token, google_requests.Request(), settings.google_client_id
    )
    if claims.get("iss") not in GOOGLE_ISSUERS:
        raise ValueError("Invalid issuer")

    email = claims.get("email")
    if email and not claims.get("email_verified", False):
        email = None
    return GoogleIdentity(
        subject=claims["sub"],
        email=email.lower() if email else None,
        name=claims.get("name") or email or "PeakPerform User",
    )


async def _resolve_user(db: AsyncSession, identity: GoogleIdentity) -> User:
    """Find the user behind a Google identity, linking by verified email or creating one."""
    result = await db.execute(
        select(AuthIdentity)
        .options(selectinload(AuthIdentity.user))
        .where(
            AuthIdentity.provider == GOOGLE_PROVIDER,
            AuthIdentity.provider_user_id == identity.subject,
        )
    )
    auth_identity = result.scalar_one_or_none()
    if auth_identity is not None:
        auth_identity.last_login_at = datetime.now(timezone.utc)
        if identity.email:
            auth_identity.email = identity.email
        return auth_identity.user

    user = None
    if identity.email:
        result = await db.execute(select(User).where(User.email == identity.email))
        user = result.scalar_one_or_none()
    if user is None:
        user = User(email=identity.email, name=identity.name)
        db.add(user)
        await db.flush()
        logger.info("Created user %s", user.id)

    db.add(
        AuthIdentity(
            user_id=user.id,
            provider=GOOGLE_PROVIDER,
            provider_user_id=identity.subject,
            email=identity.email,
        )
    )
    return user


def _cookie_options() -> dict:
    """Cross-domain deployments need samesite=none, which requires secure."""
    return {
        "httponly": True,
        "secure": settings.cookie_cross_domain or settings.environment != "development",
        "samesite": "none" if settings.cookie_cross_domain else "lax",
    }


@router.post("/google", response_model=TokenResponse)
async def google_login(request: GoogleAuthRequest, response: Response, db: DbSession) -> TokenResponse:
    """Exchange a Google id_token for a session JWT."""
    try:
        identity = await asyncio.to_thread(_verify_google_token, request.id_token)
    except ValueError as e:
        logger.warning("Rejected Google id_token: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid Google id_token: {e}",
        )

    user = await _resolve_user(db, identity)
    await db.commit()
    await db.refresh(user)

    access_token = create_access_token(user.id)
    expires_in = settings.jwt_expire_minutes * 60
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=access_token,
        max_age=expires_in,
        **_cookie_options(),
    )
    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=UserRead.model_validate(user),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response) -> None:
    """Clear the session cookie. A JWT the client kept elsewhere stays valid until it expires."""
    response.delete_cookie(key=ACCESS_TOKEN_COOKIE, **_cookie_options())


@router.get("/me", response_model=UserRead)
async def get_me(current_user: CurrentUser) -> UserRead:
    return UserRead.model_validate(current_user)
