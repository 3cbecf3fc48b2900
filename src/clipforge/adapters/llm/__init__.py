"""LLM provider adapters."""

from clipforge.adapters.llm.anthropic import AnthropicProvider
from clipforge.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from clipforge.adapters.llm.kie_chat import KieChatProvider
from clipforge.adapters.llm.stub import StubLLMProvider

__all__ = [
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "AnthropicProvider",
    "KieChatProvider",
    "StubLLMProvider",
]
