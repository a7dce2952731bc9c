"""User schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr

from app.schemas.base import BaseSchema


class UserRead(BaseSchema):
    """Schema for reading user data."""

    id: UUID
    email: EmailStr | None
    name: str
    created_at: datetime
    updated_at: datetime
