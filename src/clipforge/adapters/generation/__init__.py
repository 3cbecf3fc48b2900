"""Generation provider adapters."""

from clipforge.adapters.generation.base import GenerationProvider
from clipforge.adapters.generation.kie import KieProvider
from clipforge.adapters.generation.stub import StubGenerationProvider

__all__ = [
    "GenerationProvider",
    "KieProvider",
    "StubGenerationProvider",
]
