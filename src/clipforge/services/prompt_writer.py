"""LLM-backed prompt writing for the situation and continuation steps."""

from clipforge.adapters.llm.base import LLMMessage, LLMProvider
from clipforge.config import settings
from clipforge.errors import ProviderError
from clipforge.logging import get_logger
from clipforge.services.prompts import (
    CONTINUATION_USER_TEMPLATE,
    VIDEO_PROMPT_SYSTEM_PROMPT,
    continuation_system_prompt,
)

logger = get_logger(__name__)


class PromptWriter:
    """Turns free-form input into video-model prompts.

    The LLM is treated as a black box: system instructions plus one user
    message in, plain text out.
    """

    def __init__(self, llm: LLMProvider, max_tokens: int | None = None) -> None:
        self.llm = llm
        self.max_tokens = max_tokens or settings.llm_max_tokens

    async def _complete(self, system: str, user: str) -> str:
        response = await self.llm.complete(
            [LLMMessage(role="system", content=system), LLMMessage(role="user", content=user)],
            max_tokens=self.max_tokens,
        )
        text = response.content.strip()
        if not text:
            raise ProviderError(f"{self.llm.name} returned an empty prompt")
        return text

    async def write_prompt(self, situation: str) -> str:
        """Write the first-clip prompt for a situation."""
        prompt = await self._complete(VIDEO_PROMPT_SYSTEM_PROMPT, situation)
        logger.info("prompt_written", llm=self.llm.name, prompt_length=len(prompt))
        return prompt

    async def write_continuation(
        self,
        base_prompt: str,
        character_name: str,
        situation: str,
    ) -> str:
        """Write the next-clip prompt featuring a saved character."""
        user = CONTINUATION_USER_TEMPLATE.format(
            situation=situation,
            base_prompt=base_prompt,
            character_name=character_name,
        )
        prompt = await self._complete(continuation_system_prompt(character_name), user)
        logger.info(
            "continuation_prompt_written",
            llm=self.llm.name,
            character_name=character_name,
            prompt_length=len(prompt),
        )
        return prompt
