"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from clipforge.api.deps import CoordinatorDep
from clipforge.config import settings
from clipforge.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    components: dict[str, bool] | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool
    active_polls: int
    components: dict[str, bool] | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint that verifies the API is running.",
)
async def health_check() -> HealthResponse:
    """Basic health check - is the API up?

    Reports which providers are real (not stubbed).
    """
    from clipforge import __version__

    components = {
        "generation": settings.generation_provider,
        "llm": settings.llm_provider,
    }

    return HealthResponse(
        status="healthy",
        version=__version__,
        components={k: v != "stub" for k, v in components.items()},
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Comprehensive readiness check that verifies all dependencies.",
)
async def readiness_check(coordinator: CoordinatorDep) -> ReadinessResponse:
    """Comprehensive readiness check including dependencies."""
    database_ok = False
    try:
        from sqlalchemy import text

        from clipforge.db.session import engine

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            database_ok = True
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))

    components = {
        "generation": await coordinator.provider.health_check(),
        "llm": await coordinator.writer.llm.health_check(),
    }

    return ReadinessResponse(
        ready=database_ok and all(components.values()),
        database=database_ok,
        active_polls=len(coordinator.poller.active_task_ids),
        components=components,
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness probe for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe - is the process alive?"""
    return {"status": "alive"}
