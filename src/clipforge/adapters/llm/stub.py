"""Stub LLM provider for testing."""

from clipforge.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from clipforge.logging import get_logger

logger = get_logger(__name__)


class StubLLMProvider(LLMProvider):
    """Stub provider that returns mock LLM responses for testing."""

    def __init__(self) -> None:
        self.calls: list[list[LLMMessage]] = []

    @property
    def name(self) -> str:
        return "stub"

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,  # noqa: ARG002
        max_tokens: int = 4096,  # noqa: ARG002
    ) -> LLMResponse:
        """Return a mock prompt built from the last user message."""
        self.calls.append(list(messages))
        logger.info("stub_llm_complete", message_count=len(messages))

        user_message = ""
        for msg in reversed(messages):
            if msg.role == "user":
                user_message = msg.content
                break

        content = (
            "Handheld vertical shot, natural daylight. "
            f"A person speaks straight to camera about: {user_message[:200]}"
        )

        return LLMResponse(
            content=content,
            model="stub-model",
            usage={
                "prompt_tokens": len(user_message.split()),
                "completion_tokens": len(content.split()),
                "total_tokens": len(user_message.split()) + len(content.split()),
            },
            finish_reason="stop",
        )
