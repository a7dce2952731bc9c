"""Tests for progress dashboard aggregation."""

from datetime import datetime, timedelta, timezone

import pytest

from app.db.models import Flashcard, Quiz, QuizResult
from app.services.progress import attempt_percentage, average_score, get_progress, round_half_up

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def test_attempt_percentage_with_no_questions_is_zero():
    assert attempt_percentage(0, 0) == 0
    assert attempt_percentage(3, 4) == 75


def test_average_score_without_attempts_is_zero():
    assert average_score([]) == 0


def test_average_score_rounds_half_up():
    # 12.5% rounds to 13, not to the even 12
    assert average_score([(1, 8)]) == 13
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4) == 2


def test_average_score_is_mean_of_percentages():
    # 100% and 50% average to 75%, not 3/4 of pooled questions
    assert average_score([(1, 1), (2, 4)]) == 75


@pytest.fixture
async def history(db_session, user):
    """Quiz attempts and flashcards spread over the last two months."""
    quiz = Quiz(
        user_id=user.id,
        title="Cell Biology Quiz",
        questions=[{"question": "Q?", "options": ["A", "B", "C", "D"], "correctAnswer": 0}],
        source_type="ai_generated",
    )
    db_session.add(quiz)
    await db_session.flush()

    db_session.add_all(
        [
            QuizResult(user_id=user.id, quiz_id=quiz.id, score=4, total_questions=5,
                       completed_at=NOW - timedelta(days=2)),
            QuizResult(user_id=user.id, quiz_id=quiz.id, score=1, total_questions=2,
                       completed_at=NOW - timedelta(days=10)),
            QuizResult(user_id=user.id, quiz_id=quiz.id, score=3, total_questions=3,
                       completed_at=NOW - timedelta(days=40)),
        ]
    )
    db_session.add_all(
        [
            Flashcard(user_id=user.id, title="Cells", front="F", back="B",
                      created_at=NOW - timedelta(days=1)),
            Flashcard(user_id=user.id, title="Cells", front="F", back="B",
                      created_at=NOW - timedelta(days=20)),
            Flashcard(user_id=user.id, title="Cells", front="F", back="B",
                      created_at=NOW - timedelta(days=60)),
        ]
    )
    await db_session.commit()
    return quiz


async def test_get_progress_windows(db_session, user, history):
    progress = await get_progress(db_session, user.id, now=NOW)

    assert progress.week.quizzes_taken == 1
    assert progress.week.avg_score == 80
    assert progress.week.flashcards_created == 1
    assert progress.week.study_time == 15

    assert progress.month.quizzes_taken == 2
    assert progress.month.avg_score == 65
    assert progress.month.flashcards_created == 2
    assert progress.month.study_time == 30


async def test_get_progress_recent_quizzes_newest_first(db_session, user, history):
    progress = await get_progress(db_session, user.id, now=NOW)

    assert [r.percentage for r in progress.recent_quizzes] == [80, 50, 100]
    assert progress.recent_quizzes[0].title == "Cell Biology Quiz"
    assert progress.recent_quizzes[0].score == 4
    assert progress.recent_quizzes[0].total == 5


async def test_get_progress_without_activity(db_session, user):
    progress = await get_progress(db_session, user.id, now=NOW)

    assert progress.week.quizzes_taken == 0
    assert progress.week.avg_score == 0
    assert progress.month.study_time == 0
    assert progress.recent_quizzes == []


async def test_progress_endpoint(client):
    response = await client.get("/progress/")

    assert response.status_code == 200
    data = response.json()
    assert data["week"] == {"quizzesTaken": 0, "avgScore": 0, "flashcardsCreated": 0, "studyTime": 0}
    assert data["recentQuizzes"] == []
