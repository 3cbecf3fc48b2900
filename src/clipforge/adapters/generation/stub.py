"""Stub generation provider for testing."""

from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from clipforge.adapters.generation.base import GenerationProvider
from clipforge.domain.enums import TaskKind, TaskStatus
from clipforge.domain.models import TaskObservation
from clipforge.errors import ProviderError
from clipforge.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _StubJob:
    kind: TaskKind
    parameters: dict[str, Any]
    queries: int = 0
    history: list[TaskStatus] = field(default_factory=list)


class StubGenerationProvider(GenerationProvider):
    """Simulates provider jobs in memory.

    Each job walks ``waiting -> generating -> success`` over ``steps`` status
    queries. A prompt containing ``fail_marker`` ends in ``fail`` instead.
    """

    def __init__(self, steps: int = 3, fail_marker: str = "[fail]") -> None:
        self.steps = max(1, steps)
        self.fail_marker = fail_marker
        self.jobs: dict[str, _StubJob] = {}

    @property
    def name(self) -> str:
        return "stub"

    async def submit_job(self, kind: TaskKind, parameters: dict[str, Any]) -> str:
        provider_task_id = f"stub-{uuid4().hex[:12]}"
        self.jobs[provider_task_id] = _StubJob(kind=kind, parameters=dict(parameters))
        logger.info("stub_job_submitted", kind=str(kind), provider_task_id=provider_task_id)
        return provider_task_id

    async def query_status(self, provider_task_id: str) -> TaskObservation:
        job = self.jobs.get(provider_task_id)
        if job is None:
            raise ProviderError("recordInfo is null", code=422)

        job.queries += 1
        if job.queries < self.steps:
            status = TaskStatus.WAITING if job.queries == 1 else TaskStatus.GENERATING
        elif self.fail_marker in str(job.parameters.get("prompt", "")):
            status = TaskStatus.FAIL
        else:
            status = TaskStatus.SUCCESS
        job.history.append(status)

        if status == TaskStatus.SUCCESS:
            observation = TaskObservation(status=status, progress=100)
            if job.kind == TaskKind.CHARACTER_CREATION:
                observation.character_id = f"char_{provider_task_id[-8:]}"
            else:
                observation.result_urls = [f"https://stub.invalid/videos/{provider_task_id}.mp4"]
            return observation

        if status == TaskStatus.FAIL:
            return TaskObservation(status=status, fail_message="stub failure requested")

        progress = int(100 * (job.queries - 1) / self.steps)
        return TaskObservation(status=status, progress=progress)
