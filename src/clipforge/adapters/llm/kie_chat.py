"""Chat completions served by kie.ai (OpenAI-compatible wire format)."""

from typing import Any

import httpx

from clipforge.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse, post_json
from clipforge.config import settings
from clipforge.errors import ProviderError, TransportError
from clipforge.logging import get_logger

logger = get_logger(__name__)


class KieChatProvider(LLMProvider):
    """kie.ai chat provider (Gemini models by default)."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.kie_api_key
        self.model = model or settings.kie_chat_model
        self.base_url = (base_url or settings.kie_base_url).rstrip("/")
        self._transport = transport

        if not self.api_key:
            logger.warning("kie_api_key_not_configured")

    @property
    def name(self) -> str:
        return f"kie:{self.model}"

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> LLMResponse:
        """Generate completion using the kie.ai chat endpoint."""
        if not self.api_key:
            raise ProviderError("kie.ai API key not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        payload: dict[str, Any] = {
            "messages": [
                {"role": m.role, "content": [{"type": "text", "text": m.content}]}
                for m in messages
            ],
            "stream": False,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        logger.debug("kie_chat_request", model=self.model, message_count=len(messages))

        data = await post_json(
            f"{self.base_url}/{self.model}/v1/chat/completions",
            headers=headers,
            payload=payload,
            provider="kie",
            transport=self._transport,
        )

        # kie.ai wraps some failures in a 200 envelope
        if "choices" not in data and data.get("code") not in (None, 200):
            raise ProviderError(data.get("msg") or "kie.ai chat error", code=data.get("code"))

        try:
            choice = data["choices"][0]
            content = choice["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise TransportError("kie.ai chat response has no choices") from e

        usage = data.get("usage") or {}

        logger.info(
            "kie_chat_response",
            model=self.model,
            tokens_used=usage.get("total_tokens", 0),
            finish_reason=choice.get("finish_reason"),
        )

        return LLMResponse(
            content=content,
            model=data.get("model", self.model),
            usage={
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
            raw_response=data,
            finish_reason=choice.get("finish_reason"),
        )

    async def health_check(self) -> bool:
        return bool(self.api_key)
