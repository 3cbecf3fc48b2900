"""Base interface for generation providers."""

from abc import ABC, abstractmethod
from typing import Any

from clipforge.domain.enums import TaskKind
from clipforge.domain.models import TaskObservation


class GenerationProvider(ABC):
    """Abstract base class for video/character generation providers.

    Implementations perform exactly one network call per method invocation and
    never retry; retrying is the poller's job.

    Implementations:
    - KieProvider: kie.ai jobs API (Sora 2 models)
    - StubGenerationProvider: In-memory simulation for tests and local runs
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def submit_job(self, kind: TaskKind, parameters: dict[str, Any]) -> str:
        """Submit a job of the given kind.

        Args:
            kind: Which job to run
            parameters: Provider input for the job

        Returns:
            The provider-assigned task id

        Raises:
            ProviderError: The provider reported a non-success code
            TransportError: The provider could not be reached or answered garbage
        """
        ...

    @abstractmethod
    async def query_status(self, provider_task_id: str) -> TaskObservation:
        """Read the current status of a submitted job.

        Raises:
            ProviderError: The provider reported a non-success code
            TransportError: The provider could not be reached or answered garbage
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available and healthy."""
        return True
