"""Tests for quiz listing and result submission."""

from uuid import uuid4

from sqlalchemy import select

from app.api.routes.quizzes import score_answers
from app.db.models import Flashcard, Quiz, QuizResult

QUESTIONS = [
    {"question": "2 + 2?", "options": ["3", "4", "5", "6"], "correctAnswer": 1},
    {"question": "3 * 3?", "options": ["6", "8", "9", "12"], "correctAnswer": 2},
    {"question": "10 / 2?", "options": ["5", "2", "20", "8"], "correctAnswer": 0},
]


async def make_quiz(db, user) -> Quiz:
    quiz = Quiz(user_id=user.id, title="Arithmetic", questions=QUESTIONS, source_type="ai_generated")
    db.add(quiz)
    await db.commit()
    return quiz


def test_score_answers_counts_matches():
    assert score_answers(QUESTIONS, [1, 2, 0]) == 3
    assert score_answers(QUESTIONS, [1, 0, None]) == 1
    assert score_answers(QUESTIONS, [None, None, None]) == 0


async def test_submit_quiz_result(client, db_session, user):
    quiz = await make_quiz(db_session, user)

    response = await client.post(f"/quizzes/{quiz.id}/results", json={"answers": [1, 3, 0]})

    assert response.status_code == 201
    data = response.json()
    assert data["score"] == 2
    assert data["totalQuestions"] == 3

    result = await db_session.execute(select(QuizResult.score, QuizResult.total_questions))
    assert result.one() == (2, 3)


async def test_submit_quiz_result_wrong_answer_count(client, db_session, user):
    quiz = await make_quiz(db_session, user)

    response = await client.post(f"/quizzes/{quiz.id}/results", json={"answers": [1, 2]})

    assert response.status_code == 400


async def test_submit_quiz_result_unknown_quiz(client):
    response = await client.post(f"/quizzes/{uuid4()}/results", json={"answers": [1]})

    assert response.status_code == 404


async def test_list_and_get_quizzes(client, db_session, user):
    quiz = await make_quiz(db_session, user)

    listed = await client.get("/quizzes/")
    assert listed.status_code == 200
    assert [q["title"] for q in listed.json()] == ["Arithmetic"]
    assert listed.json()[0]["questions"][1]["correctAnswer"] == 2

    fetched = await client.get(f"/quizzes/{quiz.id}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == str(quiz.id)


async def test_delete_quiz(client, db_session, user):
    quiz = await make_quiz(db_session, user)

    response = await client.delete(f"/quizzes/{quiz.id}")

    assert response.status_code == 204
    result = await db_session.execute(select(Quiz))
    assert result.scalars().all() == []


async def test_list_flashcards_filters_by_category(client, db_session, user):
    db_session.add_all(
        [
            Flashcard(user_id=user.id, title="Cells", front="F1", back="B1", category="academic"),
            Flashcard(user_id=user.id, title="Sleep", front="F2", back="B2", category="wellness"),
        ]
    )
    await db_session.commit()

    response = await client.get("/flashcards/", params={"category": "wellness"})

    assert response.status_code == 200
    assert [card["front"] for card in response.json()] == ["F2"]
