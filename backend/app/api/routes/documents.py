"""API routes for study document upload and management."""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import func, select

from app.api.deps import CurrentUser, DbSession, get_user_resource_or_404
from app.config import sanitize_error
from app.db.models import ProcessingStatus, UploadedDocument
from app.schemas.documents import (
    DocumentListResponse,
    DocumentRead,
    DocumentUploadURLRequest,
    DocumentUploadURLResponse,
)
from app.services import s3_service
from app.services.s3 import StorageError, document_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("/upload-url", response_model=DocumentUploadURLResponse)
async def get_upload_url(
    request: DocumentUploadURLRequest,
    db: DbSession,
    user: CurrentUser,
):
    """
    Generate a presigned URL for direct document upload to S3.

    Flow:
    1. Client calls this endpoint with file name, MIME type, and size
    2. Server registers the document (status='pending') and returns presigned POST data
    3. Client uploads the file directly to S3
    4. Client calls POST /process-document with the returned filePath
    """
    file_path = document_key(user.id, request.file_name)

    try:
        presigned = await s3_service.generate_presigned_upload_url(
            file_key=file_path,
            content_type=request.file_type,
        )
    except StorageError as e:
        logger.error("Failed to presign upload for %s: %s", file_path, str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="Failed to prepare upload."),
        )

    document = UploadedDocument(
        user_id=user.id,
        file_name=request.file_name,
        file_path=file_path,
        file_type=request.file_type,
        file_size=request.file_size,
        processing_status=ProcessingStatus.PENDING.value,
    )
    db.add(document)
    await db.commit()
    await db.refresh(document)

    return DocumentUploadURLResponse(
        upload_url=presigned["url"],
        fields=presigned["fields"],
        document_id=document.id,
        file_path=file_path,
    )


@router.get("/", response_model=DocumentListResponse)
async def list_documents(
    db: DbSession,
    user: CurrentUser,
    skip: int = 0,
    limit: int = 100,
):
    """List the user's uploaded documents, newest first."""
    query = select(UploadedDocument).where(UploadedDocument.user_id == user.id)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(UploadedDocument.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    documents = result.scalars().all()

    return DocumentListResponse(
        documents=[DocumentRead.model_validate(d) for d in documents],
        total=total,
    )


@router.get("/{document_id}", response_model=DocumentRead)
async def get_document(
    document_id: UUID,
    db: DbSession,
    user: CurrentUser,
):
    """Get document details including processing status."""
    document = await get_user_resource_or_404(db, UploadedDocument, document_id, user.id)
    return DocumentRead.model_validate(document)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: UUID,
    db: DbSession,
    user: CurrentUser,
):
    """
    Delete a document from both S3 and the database.

    Deletes from S3 first; if that fails the row is kept so the file is not orphaned.
    Flashcards and quizzes generated from the document are kept.
    """
    document = await get_user_resource_or_404(db, UploadedDocument, document_id, user.id)

    try:
        await s3_service.delete_document(document.file_path)
    except StorageError as e:
        logger.error("Failed to delete from S3 (key=%s): %s", document.file_path, str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="Failed to delete document from storage."),
        )

    await db.delete(document)
    await db.commit()

    return None
