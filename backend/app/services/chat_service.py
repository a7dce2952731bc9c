"""Category assistant chat with streaming support."""

import asyncio
import logging
from typing import AsyncIterator

from app.services.llm_gateway import GatewayError, llm_gateway

logger = logging.getLogger(__name__)

CATEGORY_PROMPTS = {
    "health": (
        "You are PeakPerform's health coach. Give personalized workout plans, diet "
        "recommendations, and sport-specific training guidance. Ask about the user's sport, "
        "schedule, and goals when they matter, and keep advice safe and practical."
    ),
    "academic": (
        "You are PeakPerform's study mentor. Help the user prepare for tests, structure "
        "presentations, build mind maps of concepts, and plan personalized learning roadmaps. "
        "Explain clearly and check understanding."
    ),
    "wellness": (
        "You are PeakPerform's wellness guide. Offer stress management techniques, "
        "motivational support, and guidance on work-life balance. Be warm and concrete, and "
        "suggest professional help when something sounds serious."
    ),
}

MAX_ATTEMPTS = 3


def system_prompt_for(category: str) -> str:
    """System prompt for a category assistant."""
    return CATEGORY_PROMPTS[category]


class ChatService:
    """Service for category chat replies."""

    async def get_full_response(
        self,
        category: str,
        user_message: str,
        conversation_history: list[dict],
    ) -> str:
        """
        Get a non-streaming reply.

        Transient gateway failures (rate limits, overload, connection) are retried
        with exponential backoff; everything else propagates.
        """
        messages = conversation_history + [{"role": "user", "content": user_message}]

        for attempt in range(MAX_ATTEMPTS):
            try:
                return await llm_gateway.complete_text(
                    messages, system=system_prompt_for(category)
                )
            except GatewayError as e:
                if not e.retryable or attempt == MAX_ATTEMPTS - 1:
                    raise
                delay = 1.0 * (2 ** attempt)
                logger.warning(
                    "Chat gateway transient error (attempt %d/%d), retrying in %.1fs: %s",
                    attempt + 1, MAX_ATTEMPTS, delay, str(e),
                )
                await asyncio.sleep(delay)
        raise AssertionError("unreachable")

    async def stream_response(
        self,
        category: str,
        user_message: str,
        conversation_history: list[dict],
    ) -> AsyncIterator[str]:
        """
        Stream a reply as text chunks.

        Only retries when the failure happens before the first chunk was sent.
        """
        messages = conversation_history + [{"role": "user", "content": user_message}]

        for attempt in range(MAX_ATTEMPTS):
            sent_any = False
            try:
                async for text in llm_gateway.stream_text(
                    messages, system=system_prompt_for(category)
                ):
                    sent_any = True
                    yield text
                return
            except GatewayError as e:
                if sent_any or not e.retryable or attempt == MAX_ATTEMPTS - 1:
                    raise
                delay = 1.0 * (2 ** attempt)
                logger.warning(
                    "Chat stream transient error (attempt %d/%d), retrying in %.1fs: %s",
                    attempt + 1, MAX_ATTEMPTS, delay, str(e),
                )
                await asyncio.sleep(delay)


# Singleton instance
chat_service = ChatService()
