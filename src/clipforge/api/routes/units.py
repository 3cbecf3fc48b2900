"""Creative unit (pipeline session) endpoints."""

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from clipforge.api.deps import CoordinatorDep, http_error, parse_uuid
from clipforge.api.routes.schemas import (
    StageViewResponse,
    TaskResponse,
    UnitResponse,
    task_to_response,
    unit_to_response,
)
from clipforge.domain.enums import STAGE_LABELS, Stage
from clipforge.errors import ClipforgeError
from clipforge.logging import get_logger

router = APIRouter(prefix="/units", tags=["Units"])
logger = get_logger(__name__)


class SubmitSituationRequest(BaseModel):
    """Request to start a creative unit from a situation."""

    situation: str = Field(..., max_length=5000, description="Free-form situation for the ad")
    name: str | None = Field(None, max_length=255)


class SubmitPromptRequest(BaseModel):
    """Request to generate a clip. Omit ``prompt`` to use the stored one."""

    prompt: str | None = Field(None, max_length=10000)
    image_urls: list[str] | None = Field(
        None,
        description="Reference images; when given the clip is generated image-to-video",
    )


class CreateCharacterRequest(BaseModel):
    """Request to extract a character from the first clip."""

    description: str = Field(..., max_length=5000, description="What the character looks like")
    timestamps: str = Field(
        default="1,4",
        description="Window of the source clip as 'start,end' seconds (1-4s long)",
    )
    character_name: str | None = Field(None, max_length=64)
    safety_instruction: str | None = Field(
        None,
        max_length=2000,
        description="Safety guidance sent to the provider with the character request",
    )


class ContinueResponse(BaseModel):
    """Continuation prompt for the next clip."""

    unit_id: str
    prompt: str


@router.post(
    "",
    response_model=UnitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit situation",
    description="Create a creative unit and write its first video prompt.",
)
async def submit_situation(request: SubmitSituationRequest, coordinator: CoordinatorDep) -> UnitResponse:
    logger.info("submit_situation", situation=request.situation[:50])
    try:
        unit = await coordinator.submit_situation(request.situation, name=request.name)
    except ClipforgeError as e:
        raise http_error(e) from e
    return unit_to_response(unit)


@router.get(
    "",
    response_model=list[UnitResponse],
    summary="List units",
)
async def list_units(
    coordinator: CoordinatorDep,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> list[UnitResponse]:
    units = coordinator.list_units(limit=limit, offset=offset)
    return [unit_to_response(u, coordinator.unit_tasks(u)) for u in units]


@router.get(
    "/{unit_id}",
    response_model=UnitResponse,
    summary="Get unit",
)
async def get_unit(unit_id: str, coordinator: CoordinatorDep) -> UnitResponse:
    unit_uuid = parse_uuid(unit_id, "unit")
    try:
        unit = coordinator.get_unit(unit_uuid)
        return unit_to_response(unit, coordinator.unit_tasks(unit))
    except ClipforgeError as e:
        raise http_error(e) from e


@router.get(
    "/{unit_id}/stages/{stage}",
    response_model=StageViewResponse,
    summary="View stage",
    description="Look at any stage of a unit. Never changes the unit's stage.",
)
async def view_stage(unit_id: str, stage: Stage, coordinator: CoordinatorDep) -> StageViewResponse:
    unit_uuid = parse_uuid(unit_id, "unit")
    try:
        view = coordinator.view_stage(unit_uuid, stage)
    except ClipforgeError as e:
        raise http_error(e) from e

    return StageViewResponse(
        unit_id=str(view.unit.id),
        stage=view.stage.value,
        stage_label=STAGE_LABELS[view.stage],
        current_stage=view.unit.stage.value,
        reached=view.reached,
        task=task_to_response(view.task) if view.task else None,
    )


@router.delete(
    "/{unit_id}",
    summary="Delete unit",
    description="Stop polling the unit's tasks and delete it together with its tasks.",
)
async def delete_unit(unit_id: str, coordinator: CoordinatorDep) -> dict[str, bool]:
    unit_uuid = parse_uuid(unit_id, "unit")
    try:
        await coordinator.delete_unit(unit_uuid)
    except ClipforgeError as e:
        raise http_error(e) from e
    logger.info("unit_deleted_via_api", unit_id=unit_id)
    return {"ok": True}


@router.post(
    "/{unit_id}/prompt",
    response_model=TaskResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit prompt",
    description="Submit the unit's prompt for video generation and start polling.",
)
async def submit_prompt(
    unit_id: str,
    request: SubmitPromptRequest,
    coordinator: CoordinatorDep,
) -> TaskResponse:
    unit_uuid = parse_uuid(unit_id, "unit")
    try:
        task = await coordinator.submit_prompt(
            unit_uuid, request.prompt, image_urls=request.image_urls
        )
    except ClipforgeError as e:
        raise http_error(e) from e
    return task_to_response(task)


@router.post(
    "/{unit_id}/character",
    response_model=TaskResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Create character",
    description="Extract a reusable character from a window of the finished first clip.",
)
async def create_character(
    unit_id: str,
    request: CreateCharacterRequest,
    coordinator: CoordinatorDep,
) -> TaskResponse:
    unit_uuid = parse_uuid(unit_id, "unit")
    try:
        task = await coordinator.create_character(
            unit_uuid,
            request.description,
            request.timestamps,
            character_name=request.character_name,
            safety_instruction=request.safety_instruction,
        )
    except ClipforgeError as e:
        raise http_error(e) from e
    return task_to_response(task)


@router.post(
    "/{unit_id}/continue",
    response_model=ContinueResponse,
    summary="Continue with character",
    description="Write the next clip's prompt featuring the saved character.",
)
async def continue_with_character(unit_id: str, coordinator: CoordinatorDep) -> ContinueResponse:
    unit_uuid = parse_uuid(unit_id, "unit")
    try:
        prompt = await coordinator.continue_with_character(unit_uuid)
    except ClipforgeError as e:
        raise http_error(e) from e
    return ContinueResponse(unit_id=unit_id, prompt=prompt)


@router.post(
    "/{unit_id}/next",
    response_model=TaskResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit next clip",
    description="Submit the continuation prompt for video generation.",
)
async def submit_next(
    unit_id: str,
    request: SubmitPromptRequest,
    coordinator: CoordinatorDep,
) -> TaskResponse:
    unit_uuid = parse_uuid(unit_id, "unit")
    try:
        task = await coordinator.submit_next_prompt(
            unit_uuid, request.prompt, image_urls=request.image_urls
        )
    except ClipforgeError as e:
        raise http_error(e) from e
    return task_to_response(task)


