"""Tests for category chat and conversation history."""

import importlib
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from sqlalchemy import func, select

from app.api.routes.chat import _title_from_message
from app.db.models import ChatConversation, ChatMessage
from app.services.chat_service import chat_service
from app.services.history import summarize_categories
from app.services.llm_gateway import GatewayError, llm_gateway
from tests.fakes import gateway_status_error, text_response

chat_service_module = importlib.import_module("app.services.chat_service")

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def test_title_from_message_trims_long_messages():
    assert _title_from_message("  How do I   study?  ") == "How do I study?"

    title = _title_from_message("word " * 40)
    assert len(title) <= 60
    assert title.endswith("...")


def test_summarize_categories_includes_empty_categories():
    assert {k: v.model_dump() for k, v in summarize_categories([]).items()} == {
        "health": {"sessions": 0, "messages": 0},
        "academic": {"sessions": 0, "messages": 0},
        "wellness": {"sessions": 0, "messages": 0},
    }


# =============================================================================
# MESSAGES
# =============================================================================


async def test_send_message_starts_conversation(client, db_session, gateway, user):
    gateway.queue(text_response("Start with spaced repetition."))

    response = await client.post("/chat/academic/messages", json={"message": "How should I revise?"})

    assert response.status_code == 200
    data = response.json()
    assert data["message"]["role"] == "assistant"
    assert data["message"]["content"] == "Start with spaced repetition."

    result = await db_session.execute(select(ChatConversation.category, ChatConversation.title))
    assert result.one() == ("academic", "How should I revise?")

    count = await db_session.execute(select(func.count()).select_from(ChatMessage))
    assert count.scalar() == 2

    call = gateway.calls[0]
    assert "study mentor" in call["system"]
    assert call["messages"] == [{"role": "user", "content": "How should I revise?"}]


async def test_send_message_continues_conversation(client, db_session, gateway, user):
    gateway.queue(text_response("First reply."), text_response("Second reply."))

    first = await client.post("/chat/health/messages", json={"message": "Plan my week"})
    conversation_id = first.json()["conversationId"]

    second = await client.post(
        "/chat/health/messages",
        json={"message": "Add swimming", "conversationId": conversation_id},
    )

    assert second.status_code == 200
    assert second.json()["conversationId"] == conversation_id
    assert len(gateway.calls[1]["messages"]) == 3
    assert gateway.calls[1]["messages"][-1] == {"role": "user", "content": "Add swimming"}


async def test_send_message_category_mismatch(client, gateway):
    gateway.queue(text_response("Breathe in for four counts."))
    first = await client.post("/chat/wellness/messages", json={"message": "I feel stressed"})

    response = await client.post(
        "/chat/academic/messages",
        json={"message": "Now algebra", "conversationId": first.json()["conversationId"]},
    )

    assert response.status_code == 400


async def test_send_message_unknown_category(client, gateway):
    response = await client.post("/chat/finance/messages", json={"message": "Budget?"})

    assert response.status_code == 422
    assert gateway.calls == []


async def test_send_message_retries_rate_limit(client, gateway, monkeypatch):
    sleep = AsyncMock()
    monkeypatch.setattr(chat_service_module, "asyncio", SimpleNamespace(sleep=sleep))
    gateway.queue(gateway_status_error(429), text_response("Recovered."))

    response = await client.post("/chat/academic/messages", json={"message": "Hello"})

    assert response.status_code == 200
    assert response.json()["message"]["content"] == "Recovered."
    sleep.assert_awaited_once()


async def test_send_message_does_not_retry_server_error(client, db_session, gateway):
    gateway.queue(gateway_status_error(500))

    response = await client.post("/chat/academic/messages", json={"message": "Hello"})

    assert response.status_code == 500
    assert len(gateway.calls) == 1
    # The user's message is kept even though no reply was produced
    count = await db_session.execute(select(func.count()).select_from(ChatMessage))
    assert count.scalar() == 1


# =============================================================================
# HISTORY
# =============================================================================


async def test_conversation_history(client, db_session, user):
    older = ChatConversation(user_id=user.id, category="health", title="Training plan",
                             created_at=NOW - timedelta(days=2))
    newer = ChatConversation(user_id=user.id, category="health", title="Recovery",
                             created_at=NOW - timedelta(days=1))
    academic = ChatConversation(user_id=user.id, category="academic", title="Exam prep",
                                created_at=NOW - timedelta(days=3))
    db_session.add_all([older, newer, academic])
    await db_session.flush()
    db_session.add_all(
        [ChatMessage(conversation_id=older.id, role="user", content=f"m{i}") for i in range(3)]
        + [ChatMessage(conversation_id=academic.id, role="user", content="hi")]
    )
    await db_session.commit()

    response = await client.get("/chat/history")

    assert response.status_code == 200
    data = response.json()
    assert [c["title"] for c in data["conversations"]] == ["Recovery", "Training plan", "Exam prep"]
    assert [c["messageCount"] for c in data["conversations"]] == [0, 3, 1]
    assert data["categories"] == {
        "health": {"sessions": 2, "messages": 3},
        "academic": {"sessions": 1, "messages": 1},
        "wellness": {"sessions": 0, "messages": 0},
    }


async def test_conversation_history_empty(client):
    response = await client.get("/chat/history")

    assert response.status_code == 200
    assert response.json()["conversations"] == []
    assert response.json()["categories"]["wellness"] == {"sessions": 0, "messages": 0}


async def test_get_conversation_with_messages(client, gateway):
    gateway.queue(text_response("Try box breathing."))
    sent = await client.post("/chat/wellness/messages", json={"message": "Any tips?"})

    response = await client.get(f"/chat/conversations/{sent.json()['conversationId']}")

    assert response.status_code == 200
    assert {m["role"] for m in response.json()["messages"]} == {"user", "assistant"}


# =============================================================================
# STREAMING
# =============================================================================


async def test_stream_response_retries_before_first_chunk(monkeypatch):
    attempts = []

    async def flaky_stream(messages, *, system=None):
        attempts.append(system)
        if len(attempts) == 1:
            raise GatewayError(529, retryable=True)
        for chunk in ("Deep ", "breaths."):
            yield chunk

    monkeypatch.setattr(llm_gateway, "stream_text", flaky_stream)
    monkeypatch.setattr(chat_service_module, "asyncio", SimpleNamespace(sleep=AsyncMock()))

    chunks = [chunk async for chunk in chat_service.stream_response("wellness", "Help", [])]

    assert chunks == ["Deep ", "breaths."]
    assert len(attempts) == 2
    assert "wellness guide" in attempts[0]


async def test_stream_response_does_not_retry_after_first_chunk(monkeypatch):
    attempts = []

    async def broken_stream(messages, *, system=None):
        attempts.append(system)
        yield "Partial"
        raise GatewayError(529, retryable=True)

    monkeypatch.setattr(llm_gateway, "stream_text", broken_stream)

    chunks = []
    with pytest.raises(GatewayError):
        async for chunk in chat_service.stream_response("health", "Plan", []):
            chunks.append(chunk)

    assert chunks == ["Partial"]
    assert len(attempts) == 1


@pytest.fixture
def sse_app_status(monkeypatch):
    """Drop the exit event sse-starlette may have bound to a previous test's event loop."""
    app_status = getattr(importlib.import_module("sse_starlette.sse"), "AppStatus", None)
    if app_status is not None:
        monkeypatch.setattr(app_status, "should_exit_event", None, raising=False)


def parse_events(body: str) -> list[tuple[str, str]]:
    """(event, data) pairs from a Server-Sent Events body."""
    events = []
    for block in body.replace("\r\n", "\n").split("\n\n"):
        event, data = None, []
        for line in block.split("\n"):
            if line.startswith("event:"):
                event = line[len("event:"):].strip()
            elif line.startswith("data:"):
                value = line[len("data:"):]
                data.append(value[1:] if value.startswith(" ") else value)
        if event is not None:
            events.append((event, "\n".join(data)))
    return events


async def test_stream_message_endpoint(client, db_session, gateway, sse_app_status):
    gateway.queue(["Sleep ", "eight ", "hours."])

    response = await client.post("/chat/health/messages/stream", json={"message": "Recovery tips?"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = parse_events(response.text)
    assert [name for name, _ in events] == ["conversation", "message", "message", "message", "done"]
    assert "".join(data for name, data in events if name == "message") == "Sleep eight hours."

    conversation_id = events[0][1]
    result = await db_session.execute(
        select(ChatMessage.role, ChatMessage.content)
        .join(ChatConversation)
        .where(ChatConversation.id == UUID(conversation_id))
    )
    assert sorted(result.all()) == [("assistant", "Sleep eight hours."), ("user", "Recovery tips?")]

    assert gateway.calls[0]["messages"] == [{"role": "user", "content": "Recovery tips?"}]
    assert "health coach" in gateway.calls[0]["system"]


async def test_stream_message_gateway_failure_sends_error_event(client, db_session, gateway, sse_app_status):
    gateway.queue(gateway_status_error(500))

    response = await client.post("/chat/academic/messages/stream", json={"message": "Quiz me"})

    assert response.status_code == 200
    events = parse_events(response.text)
    assert [name for name, _ in events] == ["conversation", "error"]
    assert len(gateway.calls) == 1

    result = await db_session.execute(select(ChatMessage.role))
    assert result.scalars().all() == ["user"]
