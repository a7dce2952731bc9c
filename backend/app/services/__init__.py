"""Services for external integrations."""

from app.services.s3 import s3_service
from app.services.llm_gateway import llm_gateway
from app.services.document_processor import document_processor
from app.services.study_generator import study_generator
from app.services.document_pipeline import document_pipeline
from app.services.chat_service import chat_service

__all__ = [
    "s3_service",
    "llm_gateway",
    "document_processor",
    "study_generator",
    "document_pipeline",
    "chat_service",
]
