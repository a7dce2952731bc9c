"""Translate service-layer failures into HTTP errors."""

from fastapi import HTTPException, status

from app.config import sanitize_error
from app.services.document_pipeline import DocumentInProgressError
from app.services.document_processor import InvalidDocumentError, UnsupportedDocumentError
from app.services.llm_gateway import GatewayConfigError, GatewayError, MalformedOutputError
from app.services.s3 import StorageError

# Failures the generation routes translate; anything else (e.g. database errors) propagates.
GENERATION_ERRORS = (
    GatewayConfigError,
    GatewayError,
    MalformedOutputError,
    UnsupportedDocumentError,
    InvalidDocumentError,
    StorageError,
    DocumentInProgressError,
)


def generation_http_error(error: Exception) -> HTTPException:
    """
    Map a generation/pipeline failure to the response the caller sees.

    Configuration errors are 500, gateway errors keep the gateway's status,
    malformed tool output is 502.
    """
    if isinstance(error, GatewayConfigError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(error),
        )
    if isinstance(error, GatewayError):
        return HTTPException(status_code=error.status_code, detail="AI gateway error")
    if isinstance(error, MalformedOutputError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="The AI returned malformed output.",
        )
    if isinstance(error, UnsupportedDocumentError):
        return HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=str(error),
        )
    if isinstance(error, InvalidDocumentError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, DocumentInProgressError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))

    # StorageError
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=sanitize_error(error, generic_message="Failed to process document. Please try again."),
    )
