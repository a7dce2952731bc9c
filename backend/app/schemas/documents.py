"""Pydantic schemas for uploaded document operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.config import get_settings
from app.schemas.base import BaseSchema, CreatedAtMixin, IDMixin

settings = get_settings()


# Request schemas
class DocumentUploadURLRequest(BaseSchema):
    """Request for presigned upload URL."""

    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field(..., min_length=1)
    file_size: int = Field(..., gt=0)

    @field_validator("file_type")
    @classmethod
    def check_file_type(cls, file_type: str) -> str:
        """Only PDF, PPT, PPTX, DOC, or DOCX files are accepted."""
        if file_type not in settings.allowed_document_types:
            raise ValueError("Please upload PDF, PPT, PPTX, DOC, or DOCX files only.")
        return file_type

    @field_validator("file_size")
    @classmethod
    def check_file_size(cls, file_size: int) -> int:
        """Enforce the upload size ceiling."""
        if file_size > settings.max_document_size_bytes:
            limit_mb = settings.max_document_size_bytes // (1024 * 1024)
            raise ValueError(f"Please upload files smaller than {limit_mb}MB.")
        return file_size


# Response schemas
class DocumentUploadURLResponse(BaseSchema):
    """Response with presigned upload URL."""

    upload_url: str
    fields: dict
    document_id: UUID
    file_path: str


class DocumentRead(BaseSchema, IDMixin, CreatedAtMixin):
    """Uploaded document response."""

    user_id: UUID
    file_name: str
    file_path: str
    file_type: str | None = None
    file_size: int | None = None
    processing_status: str
    processing_error: str | None = None
    flashcards_count: int | None = None
    questions_count: int | None = None
    processed_at: datetime | None = None


class DocumentListResponse(BaseModel):
    """List of documents."""

    documents: list[DocumentRead]
    total: int
