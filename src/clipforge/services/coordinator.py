"""Five-stage pipeline coordination for creative units."""

import asyncio
import functools
import re
import weakref
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar
from uuid import UUID

from clipforge.adapters.generation.base import GenerationProvider
from clipforge.config import settings
from clipforge.domain.enums import Stage, TaskKind, TaskStatus
from clipforge.domain.models import CreativeUnit, Task, TimestampWindow
from clipforge.errors import NotFoundError, StageConflictError, ValidationError
from clipforge.logging import get_logger
from clipforge.services.poller import Poller
from clipforge.services.prompt_writer import PromptWriter
from clipforge.services.task_store import TaskStore

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class StageView:
    """Read-only view of one stage of a creative unit."""

    unit: CreativeUnit
    stage: Stage
    reached: bool
    task: Task | None = None


def video_parameters(prompt: str, image_urls: list[str] | None = None) -> dict[str, Any]:
    """Provider input for a video-generation job."""
    params: dict[str, Any] = {
        "prompt": prompt,
        "aspect_ratio": settings.video_aspect_ratio,
        "n_frames": settings.video_n_frames,
        "remove_watermark": settings.video_remove_watermark,
        "upload_method": settings.video_upload_method,
    }
    if image_urls:
        params["image_urls"] = image_urls
    return params


def character_name_from(description: str) -> str:
    """Derive a provider-safe character user name from a description."""
    slug = re.sub(r"[^a-z0-9]+", "_", description.lower()).strip("_")
    return slug[:24].rstrip("_") or "character"


def _serialized_per_unit(
    method: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """Run transitions of one unit one at a time so the in-flight guard holds."""

    @functools.wraps(method)
    async def wrapper(self: "PipelineCoordinator", unit_id: UUID, *args: Any, **kwargs: Any) -> T:
        lock = self._unit_locks.setdefault(unit_id, asyncio.Lock())
        async with lock:
            return await method(self, unit_id, *args, **kwargs)

    return wrapper


def _require_text(value: str | None, field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} is required")
    return text


class PipelineCoordinator:
    """Advances creative units through situation -> prompt -> video -> character -> next.

    Every precondition is checked before any external call. Job-submitting
    stages advance as soon as the job is accepted; completion is observed by
    the poller. The stage marker only moves forward.
    """

    def __init__(
        self,
        store: TaskStore,
        provider: GenerationProvider,
        writer: PromptWriter,
        poller: Poller,
        clip_duration: float | None = None,
    ) -> None:
        self.store = store
        self.provider = provider
        self.writer = writer
        self.poller = poller
        self.clip_duration = clip_duration or float(settings.video_n_frames)
        # Entries vanish once no transition holds the lock
        self._unit_locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_unit(self, unit_id: UUID) -> CreativeUnit:
        return self.store.get_unit(unit_id)

    def list_units(self, limit: int = 100, offset: int = 0) -> list[CreativeUnit]:
        return self.store.list_units(limit=limit, offset=offset)

    def unit_tasks(self, unit: CreativeUnit) -> dict[Stage, Task]:
        tasks: dict[Stage, Task] = {}
        for stage in (Stage.VIDEO, Stage.CHARACTER, Stage.NEXT):
            task_id = unit.task_id_for(stage)
            if task_id is not None:
                tasks[stage] = self.store.get_task(task_id)
        return tasks

    def view_stage(self, unit_id: UUID, stage: Stage) -> StageView:
        """Look at an earlier (or the current) stage without touching the marker."""
        unit = self.store.get_unit(unit_id)
        task_id = unit.task_id_for(stage)
        return StageView(
            unit=unit,
            stage=stage,
            reached=not unit.stage.is_before(stage),
            task=self.store.get_task(task_id) if task_id else None,
        )

    async def poll_status(self, task_id: UUID) -> Task:
        """Current state of a task.

        Pure read apart from one thing: a non-terminal task with no live loop
        (server restart, stalled loop) gets its poller restarted.
        """
        task = self.store.get_task(task_id)
        if not task.is_terminal and not self.poller.is_active(task.id):
            if task.stalled:
                task = self.store.set_stalled(task.id, False)
            logger.info("poll_resumed", task_id=str(task.id), status=task.status.value)
            self.poller.start(task.id, task.provider_task_id)
        return task

    # ------------------------------------------------------------------
    # Stage transitions
    # ------------------------------------------------------------------

    async def submit_situation(self, situation: str, name: str | None = None) -> CreativeUnit:
        """situation -> prompt: create a unit and write its first prompt.

        If the LLM fails, no unit is kept and the error propagates.
        """
        text = _require_text(situation, "situation")
        unit = self.store.create_unit(text, name=(name or "").strip() or None)

        try:
            prompt = await self.writer.write_prompt(text)
        except Exception:
            self.store.delete_unit(unit.id)
            logger.error("situation_prompt_failed", unit_id=str(unit.id))
            raise

        return self.store.advance_unit(unit.id, Stage.PROMPT, prompt=prompt)

    @_serialized_per_unit
    async def submit_prompt(
        self,
        unit_id: UUID,
        prompt: str | None = None,
        image_urls: list[str] | None = None,
    ) -> Task:
        """prompt -> video: submit the first clip for generation.

        ``image_urls`` seeds the clip with reference images (image-to-video).
        """
        unit = self.store.get_unit(unit_id)
        text = _require_text(prompt if prompt is not None else unit.prompt, "prompt")

        if unit.stage == Stage.SITUATION:
            raise ValidationError("Generate a prompt from the situation first")
        if Stage.VIDEO.is_before(unit.stage):
            raise ValidationError(
                f"Unit is at stage '{unit.stage.value}'; its first clip can no longer be replaced"
            )
        self._guard_in_flight(unit, Stage.VIDEO)

        task = await self._submit(
            unit, Stage.VIDEO, TaskKind.VIDEO_GENERATION, video_parameters(text, image_urls)
        )
        self.store.advance_unit(unit.id, Stage.VIDEO, prompt=text, video_task_id=task.id)
        return task

    @_serialized_per_unit
    async def create_character(
        self,
        unit_id: UUID,
        description: str,
        timestamps: str,
        character_name: str | None = None,
        safety_instruction: str | None = None,
    ) -> Task:
        """video -> character: extract a reusable character from the first clip."""
        text = _require_text(description, "description")
        window = TimestampWindow.parse(timestamps, clip_duration=self.clip_duration)
        unit = self.store.get_unit(unit_id)

        if unit.stage.is_before(Stage.VIDEO) or unit.video_task_id is None:
            raise ValidationError("Submit the video before creating a character")
        if Stage.CHARACTER.is_before(unit.stage):
            raise ValidationError(
                f"Unit is at stage '{unit.stage.value}'; its character can no longer be replaced"
            )

        video_task = self.store.get_task(unit.video_task_id)
        if video_task.status != TaskStatus.SUCCESS:
            raise ValidationError(
                f"Video task is '{video_task.status.value}'; a character needs a finished video"
            )
        self._guard_in_flight(unit, Stage.CHARACTER)

        name = (character_name or "").strip() or character_name_from(text)
        params: dict[str, Any] = {
            "origin_task_id": video_task.provider_task_id,
            "timestamps": window.to_provider(),
            "character_prompt": text,
            "character_user_name": name,
        }
        if safety_instruction and safety_instruction.strip():
            params["safety_instruction"] = safety_instruction.strip()

        task = await self._submit(unit, Stage.CHARACTER, TaskKind.CHARACTER_CREATION, params)
        self.store.advance_unit(
            unit.id,
            Stage.CHARACTER,
            character_name=name,
            character_task_id=task.id,
        )
        return task

    @_serialized_per_unit
    async def continue_with_character(self, unit_id: UUID) -> str:
        """character -> next: write a continuation prompt featuring the character."""
        unit = self.store.get_unit(unit_id)

        if unit.character_task_id is None or unit.stage.is_before(Stage.CHARACTER):
            raise ValidationError("Create a character before continuing")

        character_task = self.store.get_task(unit.character_task_id)
        if character_task.status != TaskStatus.SUCCESS:
            raise ValidationError(
                f"Character task is '{character_task.status.value}'; wait for it to finish"
            )
        self._guard_in_flight(unit, Stage.NEXT)

        prompt = await self.writer.write_continuation(
            base_prompt=unit.prompt or "",
            character_name=unit.character_name or character_task.character_id or "character",
            situation=unit.situation,
        )
        self.store.advance_unit(unit.id, Stage.NEXT, next_prompt=prompt)
        return prompt

    @_serialized_per_unit
    async def submit_next_prompt(
        self,
        unit_id: UUID,
        prompt: str | None = None,
        image_urls: list[str] | None = None,
    ) -> Task:
        """Generate the continuation clip, same pattern as the first clip."""
        unit = self.store.get_unit(unit_id)
        if unit.stage != Stage.NEXT:
            raise ValidationError("Generate a continuation prompt first")

        text = _require_text(prompt if prompt is not None else unit.next_prompt, "prompt")
        self._guard_in_flight(unit, Stage.NEXT)

        task = await self._submit(
            unit, Stage.NEXT, TaskKind.VIDEO_GENERATION, video_parameters(text, image_urls)
        )
        self.store.advance_unit(unit.id, Stage.NEXT, next_prompt=text, next_task_id=task.id)
        return task

    @_serialized_per_unit
    async def delete_unit(self, unit_id: UUID) -> None:
        """Stop polling the unit's tasks, then delete it with its tasks."""
        unit = self.store.get_unit(unit_id)
        for task in self.store.list_tasks(unit.id):
            await self.poller.cancel(task.id)
        self.store.delete_unit(unit.id)
        self._unit_locks.pop(unit.id, None)

    async def resume_active(self) -> int:
        """Restart loops for tasks left non-terminal by a previous process."""
        tasks = self.store.list_active_tasks()
        for task in tasks:
            self.poller.start(task.id, task.provider_task_id)
        if tasks:
            logger.info("poll_loops_resumed", count=len(tasks))
        return len(tasks)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _guard_in_flight(self, unit: CreativeUnit, stage: Stage) -> None:
        """At most one running task per stage."""
        task_id = unit.task_id_for(stage)
        if task_id is None:
            return
        try:
            task = self.store.get_task(task_id)
        except NotFoundError:
            return
        if not task.is_terminal:
            raise StageConflictError(
                f"The {stage.value} task is still '{task.status.value}'; wait for it to finish"
            )

    async def _submit(
        self,
        unit: CreativeUnit,
        stage: Stage,
        kind: TaskKind,
        params: dict[str, Any],
    ) -> Task:
        provider_task_id = await self.provider.submit_job(kind, params)
        task = self.store.create_task(
            unit.id,
            provider_task_id=provider_task_id,
            kind=kind,
            stage=stage,
            input_data=params,
        )
        self.poller.start(task.id, provider_task_id)
        logger.info(
            "stage_job_submitted",
            unit_id=str(unit.id),
            stage=stage.value,
            task_id=str(task.id),
            provider_task_id=provider_task_id,
        )
        return task
