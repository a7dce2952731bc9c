"""API routes package."""

from app.api.routes import (
    auth,
    chat,
    documents,
    flashcards,
    generation,
    progress,
    quizzes,
)

__all__ = [
    "auth",
    "chat",
    "documents",
    "flashcards",
    "generation",
    "progress",
    "quizzes",
]
