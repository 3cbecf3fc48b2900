"""Provider selection from configuration."""

from clipforge.adapters.generation.base import GenerationProvider
from clipforge.adapters.generation.kie import KieProvider
from clipforge.adapters.generation.stub import StubGenerationProvider
from clipforge.adapters.llm.anthropic import AnthropicProvider
from clipforge.adapters.llm.base import LLMProvider
from clipforge.adapters.llm.kie_chat import KieChatProvider
from clipforge.adapters.llm.stub import StubLLMProvider
from clipforge.config import settings
from clipforge.logging import get_logger

logger = get_logger(__name__)


def get_generation_provider() -> GenerationProvider:
    """Get the configured generation provider."""
    provider_name = settings.generation_provider.lower()

    if provider_name == "kie":
        return KieProvider()
    if provider_name == "stub":
        return StubGenerationProvider()

    logger.warning("unknown_generation_provider", provider=provider_name, fallback="stub")
    return StubGenerationProvider()


def get_llm_provider() -> LLMProvider:
    """Get the configured LLM provider."""
    provider_name = settings.llm_provider.lower()

    if provider_name == "anthropic":
        return AnthropicProvider()
    if provider_name == "kie":
        return KieChatProvider()
    if provider_name == "stub":
        return StubLLMProvider()

    logger.warning("unknown_llm_provider", provider=provider_name, fallback="stub")
    return StubLLMProvider()
