"""Sign-in request and session token schemas."""

from pydantic import Field

from app.schemas.base import BaseSchema
from app.schemas.user import UserRead


class GoogleAuthRequest(BaseSchema):
    """Google id_token obtained by the frontend's sign-in flow."""

    id_token: str = Field(..., min_length=1)


class TokenResponse(BaseSchema):
    """Session JWT plus the signed-in profile."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds
    user: UserRead
