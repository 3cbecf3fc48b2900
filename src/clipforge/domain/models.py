"""Domain models - pure Python classes independent of database."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from clipforge.domain.enums import Stage, TaskKind, TaskStatus
from clipforge.errors import ValidationError

MIN_CHARACTER_WINDOW_SECONDS = 1.0
MAX_CHARACTER_WINDOW_SECONDS = 4.0


@dataclass(frozen=True)
class TimestampWindow:
    """A slice of a source clip used to extract a character.

    The provider expects the window as ``"start,end"`` in seconds.
    """

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    @classmethod
    def parse(cls, raw: str, clip_duration: float | None = None) -> "TimestampWindow":
        """Parse and validate a ``"start,end"`` window.

        Raises:
            ValidationError: If the window is malformed, shorter than 1s, longer
                than 4s, or extends past ``clip_duration``.
        """
        if not raw or not raw.strip():
            raise ValidationError("timestamps are required")

        parts = [p.strip() for p in raw.split(",")]
        if len(parts) != 2:
            raise ValidationError(f"timestamps must look like 'start,end', got {raw!r}")

        try:
            start, end = float(parts[0]), float(parts[1])
        except ValueError:
            raise ValidationError(f"timestamps must be numeric, got {raw!r}") from None

        if start < 0 or end <= start:
            raise ValidationError(f"timestamp window {raw!r} must satisfy 0 <= start < end")

        window = cls(start=start, end=end)
        if not MIN_CHARACTER_WINDOW_SECONDS <= window.duration <= MAX_CHARACTER_WINDOW_SECONDS:
            raise ValidationError(
                f"timestamp window must span 1-4 seconds, got {window.duration:g}s"
            )
        if clip_duration is not None and end > clip_duration:
            raise ValidationError(
                f"timestamp window ends at {end:g}s but the clip is {clip_duration:g}s long"
            )
        return window

    def to_provider(self) -> str:
        return f"{self.start:g},{self.end:g}"


@dataclass
class TaskObservation:
    """One status reading returned by the generation provider."""

    status: TaskStatus
    progress: int = 0
    result_urls: list[str] = field(default_factory=list)
    character_id: str | None = None
    fail_message: str | None = None
    raw: dict[str, Any] | None = None

    @property
    def result_url(self) -> str | None:
        """Primary result URL, only meaningful on success."""
        if self.status != TaskStatus.SUCCESS or not self.result_urls:
            return None
        return self.result_urls[0]


@dataclass
class Task:
    """A job submitted to the generation provider and its tracked lifecycle."""

    id: UUID
    unit_id: UUID
    provider_task_id: str
    kind: TaskKind
    stage: Stage
    status: TaskStatus
    progress: int = 0
    result_url: str | None = None
    local_path: str | None = None
    character_id: str | None = None
    fail_message: str | None = None
    warning: str | None = None
    stalled: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def playback_url(self) -> str | None:
        """Local copy when materialized, otherwise the provider URL."""
        return self.local_path or self.result_url


@dataclass
class CreativeUnit:
    """One end-to-end attempt at an ad clip and its optional continuation."""

    id: UUID
    situation: str
    stage: Stage
    name: str | None = None
    prompt: str | None = None
    video_task_id: UUID | None = None
    character_name: str | None = None
    character_task_id: UUID | None = None
    next_prompt: str | None = None
    next_task_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def task_id_for(self, stage: Stage) -> UUID | None:
        """Task that backs a job-submitting stage, if any."""
        return {
            Stage.VIDEO: self.video_task_id,
            Stage.CHARACTER: self.character_task_id,
            Stage.NEXT: self.next_task_id,
        }.get(stage)
