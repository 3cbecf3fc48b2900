"""Task status endpoints."""

from fastapi import APIRouter

from clipforge.api.deps import CoordinatorDep, http_error, parse_uuid
from clipforge.api.routes.schemas import TaskResponse, task_to_response
from clipforge.errors import ClipforgeError

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Poll task status",
    description="Current status, progress and result of a task. Safe to call repeatedly.",
)
async def poll_status(task_id: str, coordinator: CoordinatorDep) -> TaskResponse:
    task_uuid = parse_uuid(task_id, "task")
    try:
        task = await coordinator.poll_status(task_uuid)
    except ClipforgeError as e:
        raise http_error(e) from e
    return task_to_response(task)
