"""Tests for the topic-based flashcard and quiz generators."""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from app.config import get_settings
from app.db.models import Flashcard, Quiz
from app.services.llm_gateway import llm_gateway
from tests.fakes import (
    flashcards_payload,
    gateway_status_error,
    quiz_payload,
    text_response,
    tool_response,
)


async def count_rows(db, model, **filters) -> int:
    query = select(func.count()).select_from(model)
    for column, value in filters.items():
        query = query.where(getattr(model, column) == value)
    result = await db.execute(query)
    return result.scalar()


# =============================================================================
# FLASHCARDS
# =============================================================================


async def test_generate_flashcards_saves_cards(client, db_session, gateway, user):
    gateway.queue(tool_response("create_flashcards", flashcards_payload(3)))

    response = await client.post(
        "/generate-flashcards",
        json={"topic": "Photosynthesis", "count": 3},
    )

    assert response.status_code == 200
    cards = response.json()["flashcards"]
    assert len(cards) == 3
    assert cards[0] == {"front": "Card question 1", "back": "Card answer 1"}

    result = await db_session.execute(
        select(Flashcard).where(Flashcard.user_id == user.id).execution_options(populate_existing=True)
    )
    rows = result.scalars().all()
    assert len(rows) == 3
    assert {row.title for row in rows} == {"Photosynthesis"}
    assert {row.category for row in rows} == {"academic"}
    assert {row.source_type for row in rows} == {"ai_generated"}


async def test_generate_flashcards_forces_tool_call(client, gateway):
    gateway.queue(tool_response("create_flashcards", flashcards_payload(2)))

    await client.post("/generate-flashcards", json={"topic": "Mitosis", "count": 2})

    call = gateway.calls[0]
    assert call["tool_choice"] == {"type": "tool", "name": "create_flashcards"}
    assert [tool["name"] for tool in call["tools"]] == ["create_flashcards"]
    assert "Mitosis" in call["messages"][0]["content"]


async def test_generate_flashcards_uses_requested_category(client, db_session, gateway, user):
    gateway.queue(tool_response("create_flashcards", flashcards_payload(2)))

    response = await client.post(
        "/generate-flashcards",
        json={"topic": "Sleep hygiene", "count": 2, "category": "wellness"},
    )

    assert response.status_code == 200
    assert await count_rows(db_session, Flashcard, category="wellness") == 2


async def test_generate_flashcards_repeated_calls_add_rows(client, db_session, gateway, user):
    gateway.queue(
        tool_response("create_flashcards", flashcards_payload(3)),
        tool_response("create_flashcards", flashcards_payload(3)),
    )

    for _ in range(2):
        response = await client.post("/generate-flashcards", json={"topic": "Photosynthesis", "count": 3})
        assert response.status_code == 200

    assert await count_rows(db_session, Flashcard, user_id=user.id) == 6


async def test_generate_flashcards_truncates_extra_cards(client, db_session, gateway, user):
    gateway.queue(tool_response("create_flashcards", flashcards_payload(5)))

    response = await client.post("/generate-flashcards", json={"topic": "Cells", "count": 3})

    assert response.status_code == 200
    assert len(response.json()["flashcards"]) == 3
    assert await count_rows(db_session, Flashcard, user_id=user.id) == 3


@pytest.mark.parametrize(
    "body",
    [
        {"topic": "", "count": 3},
        {"topic": "Photosynthesis", "count": 0},
        {"topic": "Photosynthesis", "count": 21},
        {"topic": "Photosynthesis", "category": "finance"},
    ],
)
async def test_generate_flashcards_rejects_invalid_input(client, gateway, body):
    response = await client.post("/generate-flashcards", json=body)

    assert response.status_code == 422
    assert gateway.calls == []


async def test_generate_flashcards_for_another_user_forbidden(client, gateway):
    response = await client.post(
        "/generate-flashcards",
        json={"topic": "Photosynthesis", "count": 3, "userId": str(uuid4())},
    )

    assert response.status_code == 403
    assert gateway.calls == []


async def test_generate_flashcards_accepts_own_user_id(client, gateway, user):
    gateway.queue(tool_response("create_flashcards", flashcards_payload(1)))

    response = await client.post(
        "/generate-flashcards",
        json={"topic": "Photosynthesis", "count": 1, "userId": str(user.id)},
    )

    assert response.status_code == 200


async def test_generate_flashcards_without_api_key(client, db_session, user, monkeypatch):
    monkeypatch.setattr(get_settings(), "anthropic_api_key", None)
    monkeypatch.setattr(llm_gateway, "_client", None)

    response = await client.post("/generate-flashcards", json={"topic": "Photosynthesis", "count": 3})

    assert response.status_code == 500
    assert "ANTHROPIC_API_KEY" in response.json()["detail"]
    assert await count_rows(db_session, Flashcard, user_id=user.id) == 0


async def test_generate_flashcards_propagates_gateway_status(client, db_session, gateway, user):
    gateway.queue(gateway_status_error(503))

    response = await client.post("/generate-flashcards", json={"topic": "Photosynthesis", "count": 3})

    assert response.status_code == 503
    assert response.json()["detail"] == "AI gateway error"
    assert await count_rows(db_session, Flashcard, user_id=user.id) == 0


async def test_generate_flashcards_without_tool_call(client, db_session, gateway, user):
    gateway.queue(text_response("Here are some flashcards!"))

    response = await client.post("/generate-flashcards", json={"topic": "Photosynthesis", "count": 3})

    assert response.status_code == 502
    assert await count_rows(db_session, Flashcard, user_id=user.id) == 0


# =============================================================================
# QUIZZES
# =============================================================================


async def test_generate_quiz_saves_quiz(client, db_session, gateway, user):
    gateway.queue(tool_response("create_quiz", quiz_payload(5, title="Algebra Basics")))

    response = await client.post(
        "/generate-quiz",
        json={"topic": "Algebra", "questionCount": 5, "difficulty": "hard"},
    )

    assert response.status_code == 200
    quiz = response.json()["quiz"]
    assert quiz["title"] == "Algebra Basics"
    assert len(quiz["questions"]) == 5
    assert quiz["questions"][0]["correctAnswer"] == 1
    assert len(quiz["questions"][0]["options"]) == 4

    result = await db_session.execute(
        select(Quiz).where(Quiz.user_id == user.id).execution_options(populate_existing=True)
    )
    rows = result.scalars().all()
    assert len(rows) == 1
    assert rows[0].title == "Algebra Basics"
    assert rows[0].description == "hard difficulty quiz on Algebra"
    assert rows[0].source_type == "ai_generated"
    assert len(rows[0].questions) == 5
    assert rows[0].questions[0]["correctAnswer"] == 1


async def test_generate_quiz_prompt_mentions_difficulty(client, gateway):
    gateway.queue(tool_response("create_quiz", quiz_payload(2)))

    await client.post(
        "/generate-quiz",
        json={"topic": "Algebra", "questionCount": 2, "difficulty": "easy"},
    )

    call = gateway.calls[0]
    assert call["tool_choice"] == {"type": "tool", "name": "create_quiz"}
    assert "easy" in call["messages"][0]["content"]


async def test_generate_quiz_repeated_calls_add_rows(client, db_session, gateway, user):
    gateway.queue(
        tool_response("create_quiz", quiz_payload(3, title="Algebra Basics")),
        tool_response("create_quiz", quiz_payload(3, title="Algebra Basics")),
    )

    for _ in range(2):
        response = await client.post("/generate-quiz", json={"topic": "Algebra", "questionCount": 3})
        assert response.status_code == 200

    result = await db_session.execute(select(Quiz.id, Quiz.title).where(Quiz.user_id == user.id))
    rows = result.all()
    assert len(rows) == 2
    assert rows[0].id != rows[1].id
    assert {row.title for row in rows} == {"Algebra Basics"}


async def test_generate_quiz_defaults_title_to_topic(client, db_session, gateway, user):
    gateway.queue(tool_response("create_quiz", quiz_payload(3, title=None)))

    response = await client.post("/generate-quiz", json={"topic": "Algebra", "questionCount": 3})

    assert response.status_code == 200
    assert response.json()["quiz"]["title"] == "Algebra Quiz"

    result = await db_session.execute(select(Quiz.title, Quiz.description))
    assert result.one() == ("Algebra Quiz", "medium difficulty quiz on Algebra")


async def test_generate_quiz_rejects_out_of_range_answer(client, db_session, gateway, user):
    payload = quiz_payload(2)
    payload["questions"][1]["correctAnswer"] = 4
    gateway.queue(tool_response("create_quiz", payload))

    response = await client.post("/generate-quiz", json={"topic": "Algebra", "questionCount": 2})

    assert response.status_code == 502
    assert await count_rows(db_session, Quiz, user_id=user.id) == 0


async def test_generate_quiz_rejects_wrong_option_count(client, db_session, gateway, user):
    payload = quiz_payload(2)
    payload["questions"][0]["options"] = ["A", "B", "C"]
    gateway.queue(tool_response("create_quiz", payload))

    response = await client.post("/generate-quiz", json={"topic": "Algebra", "questionCount": 2})

    assert response.status_code == 502
    assert await count_rows(db_session, Quiz, user_id=user.id) == 0


async def test_generate_quiz_rejects_unknown_difficulty(client, gateway):
    response = await client.post(
        "/generate-quiz",
        json={"topic": "Algebra", "questionCount": 3, "difficulty": "impossible"},
    )

    assert response.status_code == 422
    assert gateway.calls == []
