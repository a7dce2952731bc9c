"""Pydantic schemas for API request/response validation."""

from app.schemas.user import UserRead
from app.schemas.auth import GoogleAuthRequest, TokenResponse
from app.schemas.generation import (
    GeneratedFlashcard,
    GeneratedQuiz,
    QuizQuestion,
    GenerateFlashcardsRequest,
    GenerateFlashcardsResponse,
    GenerateQuizRequest,
    GenerateQuizResponse,
    ProcessDocumentRequest,
    ProcessDocumentResponse,
)
from app.schemas.study import FlashcardRead, QuizRead, QuizResultCreate, QuizResultRead
from app.schemas.documents import DocumentRead, DocumentUploadURLRequest, DocumentUploadURLResponse
from app.schemas.progress import ProgressResponse, RecentQuiz, WindowStats

__all__ = [
    # User / Auth
    "UserRead",
    "GoogleAuthRequest",
    "TokenResponse",
    # Generation
    "GeneratedFlashcard",
    "GeneratedQuiz",
    "QuizQuestion",
    "GenerateFlashcardsRequest",
    "GenerateFlashcardsResponse",
    "GenerateQuizRequest",
    "GenerateQuizResponse",
    "ProcessDocumentRequest",
    "ProcessDocumentResponse",
    # Study material
    "FlashcardRead",
    "QuizRead",
    "QuizResultCreate",
    "QuizResultRead",
    # Documents
    "DocumentRead",
    "DocumentUploadURLRequest",
    "DocumentUploadURLResponse",
    # Progress
    "ProgressResponse",
    "RecentQuiz",
    "WindowStats",
]
