"""Conversation history aggregation."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Category, ChatConversation, ChatMessage
from app.schemas.chat import CategorySummary, ConversationHistoryItem, ConversationHistoryResponse


def summarize_categories(conversations: list[ConversationHistoryItem]) -> dict[str, CategorySummary]:
    """Session and message totals per category (every category present, even if empty)."""
    summaries = {category.value: CategorySummary(sessions=0, messages=0) for category in Category}
    for conversation in conversations:
        summary = summaries.get(conversation.category)
        if summary is None:
            continue
        summary.sessions += 1
        summary.messages += conversation.message_count
    return summaries


async def get_conversation_history(db: AsyncSession, user_id: UUID) -> ConversationHistoryResponse:
    """All of a user's conversations, newest first, each with its message count."""
    message_count = func.count(ChatMessage.id).label("message_count")
    result = await db.execute(
        select(ChatConversation, message_count)
        .outerjoin(ChatMessage, ChatMessage.conversation_id == ChatConversation.id)
        .where(ChatConversation.user_id == user_id)
        .group_by(ChatConversation.id)
        .order_by(ChatConversation.created_at.desc())
    )
    conversations = [
        ConversationHistoryItem(
            id=conversation.id,
            user_id=conversation.user_id,
            category=conversation.category,
            title=conversation.title,
            created_at=conversation.created_at,
            message_count=count,
        )
        for conversation, count in result.all()
    ]
    return ConversationHistoryResponse(
        conversations=conversations,
        categories=summarize_categories(conversations),
    )
