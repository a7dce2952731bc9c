"""Flashcard and quiz generation through schema-constrained tool calls."""

import logging
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Flashcard, Quiz
from app.schemas.generation import GeneratedFlashcard, GeneratedQuiz, OPTIONS_PER_QUESTION
from app.services.llm_gateway import MalformedOutputError, llm_gateway

logger = logging.getLogger(__name__)


# =============================================================================
# TOOL SCHEMAS
# =============================================================================

FLASHCARD_TOOL = {
    "name": "create_flashcards",
    "description": "Create a set of educational flashcards",
    "input_schema": {
        "type": "object",
        "properties": {
            "flashcards": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "front": {"type": "string", "description": "Question or prompt"},
                        "back": {"type": "string", "description": "Answer or explanation"},
                    },
                    "required": ["front", "back"],
                },
            },
        },
        "required": ["flashcards"],
    },
}

QUIZ_TOOL = {
    "name": "create_quiz",
    "description": "Create a multiple-choice quiz",
    "input_schema": {
        "type": "object",
        "properties": {
            "title": {"type": "string", "description": "Quiz title"},
            "questions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "question": {"type": "string", "description": "The question text"},
                        "options": {
                            "type": "array",
                            "items": {"type": "string"},
                            "minItems": OPTIONS_PER_QUESTION,
                            "maxItems": OPTIONS_PER_QUESTION,
                            "description": "Four answer options",
                        },
                        "correctAnswer": {
                            "type": "integer",
                            "minimum": 0,
                            "maximum": OPTIONS_PER_QUESTION - 1,
                            "description": "Index of correct answer (0-3)",
                        },
                    },
                    "required": ["question", "options", "correctAnswer"],
                },
            },
        },
        "required": ["title", "questions"],
    },
}

FLASHCARD_SYSTEM_PROMPT = (
    "You are a flashcard generator. Create educational flashcards with clear questions "
    "on the front and concise answers on the back."
)
QUIZ_SYSTEM_PROMPT = (
    "You are a quiz generator. Create multiple-choice questions with 4 options each "
    "and indicate the correct answer."
)


class StudyMaterialGenerator:
    """Builds prompts, calls the gateway, and validates the structured result."""

    async def generate_flashcards(self, topic: str, count: int) -> list[GeneratedFlashcard]:
        """Generate `count` flashcards about `topic`."""
        prompt = (
            f'Generate {count} flashcards about "{topic}". Each flashcard should have a clear '
            "question or prompt on the front and a detailed but concise answer on the back."
        )
        return await self._flashcards_from_prompt(prompt, count)

    async def generate_flashcards_from_text(self, content: str, count: int) -> list[GeneratedFlashcard]:
        """Generate `count` flashcards from extracted document content."""
        prompt = f"Based on this document content, generate {count} flashcards:\n\n{content}"
        return await self._flashcards_from_prompt(prompt, count)

    async def generate_quiz(self, topic: str, question_count: int, difficulty: str) -> GeneratedQuiz:
        """Generate a quiz of `question_count` questions about `topic`."""
        prompt = (
            f'Generate {question_count} {difficulty} difficulty multiple-choice questions about "{topic}". '
            "Each question should have 4 options and a clear correct answer."
        )
        return await self._quiz_from_prompt(prompt, question_count)

    async def generate_quiz_from_text(self, content: str, question_count: int) -> GeneratedQuiz:
        """Generate a quiz from extracted document content."""
        prompt = (
            f"Based on this document content, generate {question_count} multiple-choice questions:"
            f"\n\n{content}"
        )
        return await self._quiz_from_prompt(prompt, question_count)

    async def _flashcards_from_prompt(self, prompt: str, count: int) -> list[GeneratedFlashcard]:
        payload = await llm_gateway.call_tool(
            [{"role": "user", "content": prompt}],
            system=FLASHCARD_SYSTEM_PROMPT,
            tool=FLASHCARD_TOOL,
        )
        try:
            cards = [GeneratedFlashcard.model_validate(card) for card in payload["flashcards"]]
        except (KeyError, TypeError, ValidationError) as e:
            logger.warning("Malformed create_flashcards output: %s", str(e))
            raise MalformedOutputError("create_flashcards output did not match its schema") from e

        if not cards:
            raise MalformedOutputError("create_flashcards returned no flashcards")
        if len(cards) != count:
            logger.warning("Requested %d flashcards, model returned %d", count, len(cards))
        return cards[:count]

    async def _quiz_from_prompt(self, prompt: str, question_count: int) -> GeneratedQuiz:
        payload = await llm_gateway.call_tool(
            [{"role": "user", "content": prompt}],
            system=QUIZ_SYSTEM_PROMPT,
            tool=QUIZ_TOOL,
        )
        try:
            quiz = GeneratedQuiz.model_validate(payload)
        except ValidationError as e:
            logger.warning("Malformed create_quiz output: %s", str(e))
            raise MalformedOutputError("create_quiz output did not match its schema") from e

        if len(quiz.questions) != question_count:
            logger.warning(
                "Requested %d questions, model returned %d", question_count, len(quiz.questions)
            )
        quiz.questions = quiz.questions[:question_count]
        return quiz


# =============================================================================
# PERSISTENCE
# =============================================================================


async def save_flashcards(
    db: AsyncSession,
    user_id: UUID,
    cards: list[GeneratedFlashcard],
    *,
    title: str,
    category: str,
    source_type: str,
) -> list[Flashcard]:
    """Insert one Flashcard row per generated card (flushed, not committed)."""
    rows = [
        Flashcard(
            user_id=user_id,
            title=title,
            front=card.front,
            back=card.back,
            category=category,
            source_type=source_type,
        )
        for card in cards
    ]
    db.add_all(rows)
    try:
        await db.flush()
    except Exception:
        logger.exception("Error inserting flashcards")
        raise
    return rows


async def save_quiz(
    db: AsyncSession,
    user_id: UUID,
    quiz: GeneratedQuiz,
    *,
    title: str,
    description: str,
    source_type: str,
) -> Quiz:
    """Insert one Quiz row holding the whole question array (flushed, not committed)."""
    row = Quiz(
        user_id=user_id,
        title=title,
        description=description,
        questions=[q.model_dump(by_alias=True) for q in quiz.questions],
        source_type=source_type,
    )
    db.add(row)
    try:
        await db.flush()
    except Exception:
        logger.exception("Error inserting quiz")
        raise
    return row


# Singleton instance
study_generator = StudyMaterialGenerator()
