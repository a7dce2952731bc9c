"""API routes for category chat conversations with streaming support."""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sse_starlette.sse import EventSourceResponse

from app.api.deps import CurrentUser, DbSession, get_user_resource_or_404
from app.api.errors import generation_http_error
from app.config import sanitize_error
from app.db.models import ChatConversation, ChatMessage, ChatRole, User
from app.schemas.chat import (
    ChatMessageRequest,
    ChatMessageResponse,
    ChatReplyResponse,
    ConversationHistoryResponse,
    ConversationListResponse,
    ConversationResponse,
    ConversationWithMessages,
)
from app.schemas.generation import CategoryType
from app.services import chat_service
from app.services.history import get_conversation_history
from app.services.llm_gateway import GatewayConfigError, GatewayError, MalformedOutputError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

TITLE_MAX_CHARS = 60


# =============================================================================
# HELPERS
# =============================================================================


def _title_from_message(message: str) -> str:
    """Conversation title: the first message, trimmed."""
    title = " ".join(message.split())
    if len(title) > TITLE_MAX_CHARS:
        title = title[: TITLE_MAX_CHARS - 3].rstrip() + "..."
    return title


async def _start_turn(
    db: AsyncSession,
    user: User,
    category: str,
    request: ChatMessageRequest,
) -> tuple[ChatConversation, list[dict]]:
    """
    Resolve (or create) the conversation, load its history, and save the user message.

    Returns the conversation and the history preceding the new message.
    """
    if request.conversation_id is not None:
        conversation = await get_user_resource_or_404(
            db, ChatConversation, request.conversation_id, user.id
        )
        if conversation.category != category:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Conversation belongs to the {conversation.category} category.",
            )
        result = await db.execute(
            select(ChatMessage)
            .where(ChatMessage.conversation_id == conversation.id)
            .order_by(ChatMessage.created_at.asc())
        )
        history = [{"role": msg.role, "content": msg.content} for msg in result.scalars()]
    else:
        conversation = ChatConversation(
            user_id=user.id,
            category=category,
            title=_title_from_message(request.message),
        )
        db.add(conversation)
        await db.flush()
        history = []

    db.add(
        ChatMessage(
            conversation_id=conversation.id,
            role=ChatRole.USER.value,
            content=request.message,
        )
    )
    await db.commit()
    return conversation, history


# =============================================================================
# CONVERSATIONS
# =============================================================================


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    db: DbSession,
    user: CurrentUser,
    category: CategoryType | None = None,
    skip: int = 0,
    limit: int = 50,
):
    """List user's conversations, newest first, optionally within one category."""
    query = select(ChatConversation).where(ChatConversation.user_id == user.id)
    if category:
        query = query.where(ChatConversation.category == category)

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    result = await db.execute(
        query.order_by(ChatConversation.created_at.desc()).offset(skip).limit(limit)
    )
    conversations = result.scalars().all()

    return ConversationListResponse(
        conversations=[ConversationResponse.model_validate(c) for c in conversations],
        total=total,
    )


@router.get("/history", response_model=ConversationHistoryResponse)
async def conversation_history(db: DbSession, user: CurrentUser):
    """All conversations with message counts, plus per-category session/message totals."""
    return await get_conversation_history(db, user.id)


@router.get("/conversations/{conversation_id}", response_model=ConversationWithMessages)
async def get_conversation(
    conversation_id: UUID,
    db: DbSession,
    user: CurrentUser,
):
    """Get conversation with full message history."""
    conversation = await get_user_resource_or_404(
        db, ChatConversation, conversation_id, user.id
    )

    result = await db.execute(
        select(ChatMessage)
        .where(ChatMessage.conversation_id == conversation_id)
        .order_by(ChatMessage.created_at.asc())
    )
    messages = result.scalars().all()

    return ConversationWithMessages(
        **ConversationResponse.model_validate(conversation).model_dump(),
        messages=[ChatMessageResponse.model_validate(m) for m in messages],
    )


# =============================================================================
# MESSAGES
# =============================================================================


@router.post("/{category}/messages", response_model=ChatReplyResponse)
async def send_chat_message(
    category: CategoryType,
    request: ChatMessageRequest,
    db: DbSession,
    user: CurrentUser,
):
    """
    Send a message to the category assistant and return its reply.

    Without a conversationId a new conversation is started, titled after the message.
    """
    conversation, history = await _start_turn(db, user, category, request)

    try:
        reply = await chat_service.get_full_response(category, request.message, history)
    except (GatewayConfigError, GatewayError, MalformedOutputError) as e:
        raise generation_http_error(e) from e

    assistant_message = ChatMessage(
        conversation_id=conversation.id,
        role=ChatRole.ASSISTANT.value,
        content=reply,
    )
    db.add(assistant_message)
    await db.commit()
    await db.refresh(assistant_message)

    return ChatReplyResponse(
        conversation_id=conversation.id,
        message=ChatMessageResponse.model_validate(assistant_message),
    )


@router.post("/{category}/messages/stream")
async def stream_chat_message(
    category: CategoryType,
    request: ChatMessageRequest,
    db: DbSession,
    user: CurrentUser,
):
    """
    Send a message and stream the reply using Server-Sent Events (SSE).

    Events:
    - 'conversation': id of the conversation the turn belongs to
    - 'message': Text chunks from the assistant
    - 'done': Streaming complete
    - 'error': Error occurred (the partial reply is not saved)
    """
    conversation, history = await _start_turn(db, user, category, request)
    conversation_id = conversation.id

    async def event_generator():
        """Generate SSE events for streaming response."""
        yield {"event": "conversation", "data": str(conversation_id)}
        full_response = ""

        try:
            async for chunk in chat_service.stream_response(category, request.message, history):
                full_response += chunk
                yield {"event": "message", "data": chunk}

            db.add(
                ChatMessage(
                    conversation_id=conversation_id,
                    role=ChatRole.ASSISTANT.value,
                    content=full_response,
                )
            )
            await db.commit()

            yield {"event": "done", "data": ""}

        except Exception as e:
            logger.exception("Error during chat streaming")
            safe_msg = sanitize_error(e, generic_message="An error occurred during chat.")
            yield {"event": "error", "data": safe_msg}

    return EventSourceResponse(event_generator())
