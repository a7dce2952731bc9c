"""Thin wrapper around the Anthropic Messages API used as the AI gateway."""

import logging
from typing import Any, AsyncIterator

from anthropic import APIConnectionError, APIStatusError, AsyncAnthropic

from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class GatewayConfigError(RuntimeError):
    """The gateway credential is missing."""


class GatewayError(RuntimeError):
    """The gateway answered with a non-success status or could not be reached."""

    def __init__(self, status_code: int, body: Any = None, *, retryable: bool = False):
        super().__init__(f"AI gateway error (status {status_code})")
        self.status_code = status_code
        self.body = body
        self.retryable = retryable


# Rate limited (429) and overloaded (529) responses are transient
_TRANSIENT_STATUSES = (429, 529)


def _wrap_status_error(error: APIStatusError) -> GatewayError:
    logger.error("AI gateway error: %s %s", error.status_code, error.body)
    return GatewayError(
        error.status_code,
        error.body,
        retryable=error.status_code in _TRANSIENT_STATUSES,
    )


def _wrap_connection_error(error: APIConnectionError) -> GatewayError:
    logger.error("AI gateway unreachable: %s", str(error))
    return GatewayError(502, retryable=True)


class MalformedOutputError(ValueError):
    """The gateway response did not contain the structured output we asked for."""


class LLMGateway:
    """Lazily-constructed Anthropic client plus the two call shapes we use."""

    def __init__(self):
        self._client: AsyncAnthropic | None = None

    @property
    def client(self) -> AsyncAnthropic:
        """Return the Anthropic client, building it on first use."""
        if self._client is None:
            if not settings.anthropic_api_key:
                raise GatewayConfigError("ANTHROPIC_API_KEY is not configured")
            self._client = AsyncAnthropic(api_key=settings.anthropic_api_key)
        return self._client

    async def create_message(
        self,
        messages: list[dict],
        *,
        system: str | None = None,
        tools: list[dict] | None = None,
        tool_choice: dict | None = None,
        max_tokens: int | None = None,
    ):
        """
        Send one non-streaming Messages request.

        Raises:
            GatewayConfigError: No API key configured
            GatewayError: Non-2xx status or connection failure
        """
        kwargs: dict[str, Any] = {
            "model": settings.llm_model,
            "max_tokens": max_tokens or settings.llm_max_tokens,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system
        if tools:
            kwargs["tools"] = tools
        if tool_choice:
            kwargs["tool_choice"] = tool_choice

        client = self.client
        try:
            return await client.messages.create(**kwargs)
        except APIStatusError as e:
            raise _wrap_status_error(e) from e
        except APIConnectionError as e:
            raise _wrap_connection_error(e) from e

    async def call_tool(
        self,
        messages: list[dict],
        *,
        system: str,
        tool: dict,
    ) -> dict:
        """
        Force the model to answer through `tool` and return the tool input.

        The first tool call in the response is the structured result.
        """
        response = await self.create_message(
            messages,
            system=system,
            tools=[tool],
            tool_choice={"type": "tool", "name": tool["name"]},
        )
        for block in response.content:
            if getattr(block, "type", None) == "tool_use":
                if not isinstance(block.input, dict):
                    raise MalformedOutputError(f"Tool {tool['name']} returned a non-object payload")
                return block.input
        raise MalformedOutputError(f"Response contained no {tool['name']} tool call")

    async def complete_text(self, messages: list[dict], *, system: str | None = None) -> str:
        """Return the concatenated text blocks of a plain completion."""
        response = await self.create_message(messages, system=system)
        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise MalformedOutputError("Response contained no text")
        return text

    async def stream_text(self, messages: list[dict], *, system: str | None = None) -> AsyncIterator[str]:
        """Yield text chunks from a streaming completion."""
        kwargs: dict[str, Any] = {
            "model": settings.llm_model,
            "max_tokens": settings.llm_max_tokens,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system

        client = self.client
        try:
            async with client.messages.stream(**kwargs) as stream:
                async for text in stream.text_stream:
                    yield text
        except APIStatusError as e:
            raise _wrap_status_error(e) from e
        except APIConnectionError as e:
            raise _wrap_connection_error(e) from e


# Singleton instance
llm_gateway = LLMGateway()
