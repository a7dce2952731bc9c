"""Pydantic schemas for chat operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.base import BaseSchema, CreatedAtMixin, IDMixin


# Request schemas
class ChatMessageRequest(BaseSchema):
    """Request to send a chat message."""

    message: str = Field(..., min_length=1, max_length=10000)
    conversation_id: UUID | None = None


# Response schemas
class ChatMessageResponse(BaseSchema, IDMixin):
    """Chat message response."""

    conversation_id: UUID
    role: str
    content: str
    created_at: datetime


class ChatReplyResponse(BaseSchema):
    """Assistant reply to a chat message."""

    conversation_id: UUID
    message: ChatMessageResponse


class ConversationResponse(BaseSchema, IDMixin, CreatedAtMixin):
    """Conversation response."""

    user_id: UUID
    category: str
    title: str


class ConversationWithMessages(ConversationResponse):
    """Conversation with message history."""

    messages: list[ChatMessageResponse]


class ConversationListResponse(BaseModel):
    """List of conversations."""

    conversations: list[ConversationResponse]
    total: int


class ConversationHistoryItem(ConversationResponse):
    """Conversation with its message count."""

    message_count: int = 0


class CategorySummary(BaseSchema):
    """Session and message totals for one category."""

    sessions: int
    messages: int


class ConversationHistoryResponse(BaseSchema):
    """All conversations newest-first plus per-category totals."""

    conversations: list[ConversationHistoryItem]
    categories: dict[str, CategorySummary]
