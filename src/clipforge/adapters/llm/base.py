"""Base interface for LLM providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from clipforge.errors import ProviderError, TransportError


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    raw_response: dict[str, Any] | None = None
    finish_reason: str | None = None


@dataclass
class LLMMessage:
    """A message in a conversation."""

    role: str  # "system", "user", "assistant"
    content: str


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Implementations:
    - AnthropicProvider: Uses Anthropic API (Claude)
    - KieChatProvider: Uses chat models served by kie.ai (Gemini)
    - StubLLMProvider: Returns mock data for testing

    Failures are reported as ``ProviderError`` (the API answered with an error)
    or ``TransportError`` (the API could not be reached).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> LLMResponse:
        """Generate a completion from messages.

        Args:
            messages: List of conversation messages
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens in response

        Returns:
            LLMResponse with generated content
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available.

        Returns:
            True if provider is operational
        """
        return True


async def post_json(
    url: str,
    headers: dict[str, str],
    payload: dict[str, Any],
    provider: str,
    timeout: float = 120.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """POST a JSON payload and map failures onto the error taxonomy."""
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, headers=headers, json=payload)
    except httpx.HTTPError as e:
        raise TransportError(f"{provider} request failed: {e}") from e

    if response.status_code >= 500:
        raise TransportError(f"{provider} HTTP {response.status_code}: {response.text[:200]}")
    if response.is_error:
        raise ProviderError(
            f"{provider} API error: {response.text[:500]}",
            code=response.status_code,
        )

    try:
        data = response.json()
    except ValueError as e:
        raise TransportError(f"{provider} returned a non-JSON body") from e
    if not isinstance(data, dict):
        raise TransportError(f"{provider} returned an unexpected body")
    return data
