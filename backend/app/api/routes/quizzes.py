"""Quiz and quiz result routes."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select

from app.api.deps import CurrentUser, DbSession, get_user_resource_or_404
from app.db.models import Quiz, QuizResult
from app.schemas.study import QuizRead, QuizResultCreate, QuizResultRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def score_answers(questions: list[dict], answers: list[int | None]) -> int:
    """Count answers that match each question's correctAnswer."""
    return sum(
        1
        for question, answer in zip(questions, answers)
        if answer is not None and answer == question.get("correctAnswer")
    )


@router.get("/", response_model=list[QuizRead])
async def list_quizzes(
    current_user: CurrentUser,
    db: DbSession,
    source_type: Annotated[str | None, Query(alias="sourceType")] = None,
) -> list[QuizRead]:
    """List quizzes for the current user, newest first."""
    query = select(Quiz).where(Quiz.user_id == current_user.id)
    if source_type:
        query = query.where(Quiz.source_type == source_type)
    query = query.order_by(Quiz.created_at.desc())

    result = await db.execute(query)
    return [QuizRead.model_validate(q) for q in result.scalars()]


@router.get("/{quiz_id}", response_model=QuizRead)
async def get_quiz(
    quiz_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> QuizRead:
    """Get a specific quiz by ID."""
    quiz = await get_user_resource_or_404(db, Quiz, quiz_id, current_user.id)
    return QuizRead.model_validate(quiz)


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quiz(
    quiz_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> None:
    """Delete a quiz and its results."""
    quiz = await get_user_resource_or_404(db, Quiz, quiz_id, current_user.id)
    await db.delete(quiz)
    await db.commit()


@router.post("/{quiz_id}/results", response_model=QuizResultRead, status_code=status.HTTP_201_CREATED)
async def submit_quiz_result(
    quiz_id: UUID,
    data: QuizResultCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> QuizResultRead:
    """
    Record a finished quiz attempt.

    `answers` holds one option index (or null) per question, in order.
    """
    quiz = await get_user_resource_or_404(db, Quiz, quiz_id, current_user.id)

    if len(data.answers) != len(quiz.questions):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Expected {len(quiz.questions)} answers, got {len(data.answers)}.",
        )

    result = QuizResult(
        user_id=current_user.id,
        quiz_id=quiz.id,
        score=score_answers(quiz.questions, data.answers),
        total_questions=len(quiz.questions),
    )
    db.add(result)
    await db.commit()
    await db.refresh(result)

    logger.info("Quiz %s scored %d/%d", quiz.id, result.score, result.total_questions)
    return QuizResultRead.model_validate(result)
