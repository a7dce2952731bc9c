"""Progress dashboard aggregation over quiz results and flashcards."""

import math
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db.models import Flashcard, Quiz, QuizResult
from app.schemas.progress import ProgressResponse, RecentQuiz, WindowStats

settings = get_settings()

WEEK = timedelta(days=7)
MONTH = timedelta(days=30)
RECENT_LIMIT = 10


def round_half_up(value: float) -> int:
    """Round like a scoreboard does (2.5 -> 3), not banker's rounding."""
    return math.floor(value + 0.5)


def attempt_percentage(score: int, total_questions: int) -> float:
    """Percentage for one attempt; an attempt with no questions counts as 0."""
    if total_questions <= 0:
        return 0.0
    return score / total_questions * 100


def average_score(attempts: Iterable[tuple[int, int]]) -> int:
    """Mean of per-attempt percentages, 0 when there are no attempts."""
    percentages = [attempt_percentage(score, total) for score, total in attempts]
    if not percentages:
        return 0
    return round_half_up(sum(percentages) / len(percentages))


def summarize_window(attempts: list[tuple[int, int]], flashcards_created: int) -> WindowStats:
    """
    Aggregate one window.

    Study time is a fixed per-quiz estimate, not measured time.
    """
    return WindowStats(
        quizzes_taken=len(attempts),
        avg_score=average_score(attempts),
        flashcards_created=flashcards_created,
        study_time=len(attempts) * settings.study_minutes_per_quiz,
    )


async def _window_stats(db: AsyncSession, user_id: UUID, since: datetime) -> WindowStats:
    result = await db.execute(
        select(QuizResult.score, QuizResult.total_questions).where(
            QuizResult.user_id == user_id,
            QuizResult.completed_at >= since,
        )
    )
    attempts = [(score, total) for score, total in result.all()]

    count_result = await db.execute(
        select(func.count()).select_from(Flashcard).where(
            Flashcard.user_id == user_id,
            Flashcard.created_at >= since,
        )
    )
    flashcards_created = count_result.scalar() or 0
    return summarize_window(attempts, flashcards_created)


async def get_progress(
    db: AsyncSession,
    user_id: UUID,
    now: datetime | None = None,
) -> ProgressResponse:
    """Weekly and monthly stats plus the most recent quiz attempts."""
    now = now or datetime.now(timezone.utc)

    week = await _window_stats(db, user_id, now - WEEK)
    month = await _window_stats(db, user_id, now - MONTH)

    result = await db.execute(
        select(QuizResult, Quiz.title)
        .outerjoin(Quiz, Quiz.id == QuizResult.quiz_id)
        .where(QuizResult.user_id == user_id)
        .order_by(QuizResult.completed_at.desc())
        .limit(RECENT_LIMIT)
    )
    recent = [
        RecentQuiz(
            title=title or "Quiz",
            score=quiz_result.score,
            total=quiz_result.total_questions,
            percentage=round_half_up(
                attempt_percentage(quiz_result.score, quiz_result.total_questions)
            ),
            completed_at=quiz_result.completed_at,
        )
        for quiz_result, title in result.all()
    ]

    return ProgressResponse(week=week, month=month, recent_quizzes=recent)
