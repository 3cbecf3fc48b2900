"""Anthropic LLM provider implementation."""

from typing import Any

import httpx

from clipforge.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse, post_json
from clipforge.config import settings
from clipforge.errors import ProviderError
from clipforge.logging import get_logger

logger = get_logger(__name__)


class AnthropicProvider(LLMProvider):
    """Anthropic API provider for Claude models."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str = "https://api.anthropic.com/v1",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.anthropic_model
        self.base_url = base_url
        self._transport = transport

        if not self.api_key:
            logger.warning("anthropic_api_key_not_configured")

    @property
    def name(self) -> str:
        return f"anthropic:{self.model}"

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> LLMResponse:
        """Generate completion using Anthropic API."""
        if not self.api_key:
            raise ProviderError("Anthropic API key not configured")

        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json",
        }

        # Separate system message from conversation
        system_message = ""
        conversation_messages = []

        for msg in messages:
            if msg.role == "system":
                system_message = msg.content
            else:
                conversation_messages.append({"role": msg.role, "content": msg.content})

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": conversation_messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        if system_message:
            payload["system"] = system_message

        logger.debug(
            "anthropic_request",
            model=self.model,
            message_count=len(conversation_messages),
        )

        data = await post_json(
            f"{self.base_url}/messages",
            headers=headers,
            payload=payload,
            provider="anthropic",
            transport=self._transport,
        )

        content = ""
        for block in data.get("content") or []:
            if block.get("type") == "text":
                content += block.get("text", "")

        usage = data.get("usage", {})

        logger.info(
            "anthropic_response",
            model=self.model,
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
            stop_reason=data.get("stop_reason"),
        )

        return LLMResponse(
            content=content,
            model=data.get("model", self.model),
            usage={
                "prompt_tokens": usage.get("input_tokens", 0),
                "completion_tokens": usage.get("output_tokens", 0),
                "total_tokens": usage.get("input_tokens", 0) + usage.get("output_tokens", 0),
            },
            raw_response=data,
            finish_reason=data.get("stop_reason"),
        )

    async def health_check(self) -> bool:
        """Anthropic has no health endpoint; report whether a key is configured."""
        return bool(self.api_key)
