"""Flashcard, quiz, and quiz result schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema, CreatedAtMixin, IDMixin
from app.schemas.generation import QuizQuestion


class FlashcardRead(BaseSchema, IDMixin, CreatedAtMixin):
    """Flashcard response."""

    user_id: UUID
    title: str
    front: str
    back: str
    category: str
    source_type: str


class QuizRead(BaseSchema, IDMixin, CreatedAtMixin):
    """Quiz response."""

    user_id: UUID
    title: str
    description: str | None = None
    questions: list[QuizQuestion]
    source_type: str


class QuizResultCreate(BaseSchema):
    """Answers for one quiz attempt, one entry per question (None = skipped)."""

    answers: list[int | None] = Field(..., min_length=1)


class QuizResultRead(BaseSchema, IDMixin):
    """Quiz result response."""

    quiz_id: UUID
    score: int
    total_questions: int
    completed_at: datetime
