"""Adapters for external services."""

from clipforge.adapters.generation.base import GenerationProvider
from clipforge.adapters.llm.base import LLMProvider

__all__ = [
    "GenerationProvider",
    "LLMProvider",
]
