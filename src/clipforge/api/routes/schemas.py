"""Response models shared by the pipeline routes."""

from datetime import datetime

from pydantic import BaseModel

from clipforge.domain.enums import STAGE_LABELS, TASK_STATUS_LABELS, Stage
from clipforge.domain.models import CreativeUnit, Task


class TaskResponse(BaseModel):
    """Task status as exposed to clients."""

    task_id: str
    unit_id: str
    kind: str
    stage: str
    status: str
    label: str
    progress: int
    result_url: str | None
    local_path: str | None
    playback_url: str | None
    character_id: str | None = None
    fail_message: str | None = None
    warning: str | None = None
    stalled: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UnitResponse(BaseModel):
    """Creative unit with its task snapshots."""

    id: str
    name: str | None
    situation: str
    stage: str
    stage_label: str
    prompt: str | None
    character_name: str | None
    next_prompt: str | None
    video_task: TaskResponse | None = None
    character_task: TaskResponse | None = None
    next_task: TaskResponse | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class StageViewResponse(BaseModel):
    """Read-only view of one stage."""

    unit_id: str
    stage: str
    stage_label: str
    current_stage: str
    reached: bool
    task: TaskResponse | None = None


def task_to_response(task: Task) -> TaskResponse:
    """Convert a Task to TaskResponse."""
    return TaskResponse(
        task_id=str(task.id),
        unit_id=str(task.unit_id),
        kind=task.kind.value,
        stage=task.stage.value,
        status=task.status.value,
        label=TASK_STATUS_LABELS[task.status],
        progress=task.progress,
        result_url=task.result_url,
        local_path=task.local_path,
        playback_url=task.playback_url,
        character_id=task.character_id,
        fail_message=task.fail_message,
        warning=task.warning,
        stalled=task.stalled,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def unit_to_response(unit: CreativeUnit, tasks: dict[Stage, Task] | None = None) -> UnitResponse:
    """Convert a CreativeUnit (plus its tasks) to UnitResponse."""
    tasks = tasks or {}

    def _task(stage: Stage) -> TaskResponse | None:
        task = tasks.get(stage)
        return task_to_response(task) if task else None

    return UnitResponse(
        id=str(unit.id),
        name=unit.name,
        situation=unit.situation,
        stage=unit.stage.value,
        stage_label=STAGE_LABELS[unit.stage],
        prompt=unit.prompt,
        character_name=unit.character_name,
        next_prompt=unit.next_prompt,
        video_task=_task(Stage.VIDEO),
        character_task=_task(Stage.CHARACTER),
        next_task=_task(Stage.NEXT),
        created_at=unit.created_at,
        updated_at=unit.updated_at,
    )
