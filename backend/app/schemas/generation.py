"""Schemas for AI study-material generation."""

from typing import Literal
from uuid import UUID

from pydantic import Field, field_validator

from app.schemas.base import BaseSchema

CategoryType = Literal["health", "academic", "wellness"]
DifficultyType = Literal["easy", "medium", "hard"]

OPTIONS_PER_QUESTION = 4


# Structured AI output
class GeneratedFlashcard(BaseSchema):
    """One flashcard as returned by the `create_flashcards` tool."""

    front: str = Field(..., min_length=1)
    back: str = Field(..., min_length=1)


class QuizQuestion(BaseSchema):
    """One multiple-choice question as returned by the `create_quiz` tool."""

    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=OPTIONS_PER_QUESTION, max_length=OPTIONS_PER_QUESTION)
    correct_answer: int = Field(..., ge=0, le=OPTIONS_PER_QUESTION - 1)

    @field_validator("options")
    @classmethod
    def options_not_blank(cls, options: list[str]) -> list[str]:
        """Reject blank answer options."""
        if any(not option.strip() for option in options):
            raise ValueError("options must not be blank")
        return options


class GeneratedQuiz(BaseSchema):
    """Quiz payload returned by the `create_quiz` tool."""

    title: str | None = None
    questions: list[QuizQuestion] = Field(..., min_length=1)


# Request schemas
class GenerateFlashcardsRequest(BaseSchema):
    """Request to generate flashcards on a topic."""

    topic: str = Field(..., min_length=1, max_length=200)
    count: int = Field(5, ge=1, le=20)
    category: CategoryType = "academic"
    user_id: UUID | None = None


class GenerateQuizRequest(BaseSchema):
    """Request to generate a multiple-choice quiz on a topic."""

    topic: str = Field(..., min_length=1, max_length=200)
    question_count: int = Field(5, ge=1, le=20)
    difficulty: DifficultyType = "medium"
    user_id: UUID | None = None


class ProcessDocumentRequest(BaseSchema):
    """Request to turn an uploaded document into flashcards and a quiz."""

    file_path: str = Field(..., min_length=1, max_length=1024)
    file_name: str = Field(..., min_length=1, max_length=255)
    user_id: UUID | None = None


# Response schemas
class GenerateFlashcardsResponse(BaseSchema):
    """Generated flashcards."""

    flashcards: list[GeneratedFlashcard]


class GenerateQuizResponse(BaseSchema):
    """Generated quiz."""

    quiz: GeneratedQuiz


class ProcessDocumentResponse(BaseSchema):
    """Count summary of the study material produced from a document."""

    success: bool = True
    flashcards_count: int
    questions_count: int
