"""FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from clipforge.errors import (
    ClipforgeError,
    NotFoundError,
    ProviderError,
    StageConflictError,
    TransportError,
    ValidationError,
)
from clipforge.services.coordinator import PipelineCoordinator


def get_coordinator(request: Request) -> PipelineCoordinator:
    """Get the pipeline coordinator built by the application lifespan."""
    return request.app.state.coordinator


CoordinatorDep = Annotated[PipelineCoordinator, Depends(get_coordinator)]


def parse_uuid(value: str, what: str) -> UUID:
    """Parse a path id, answering 400 on malformed input."""
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {what} ID format",
        )


def http_error(error: ClipforgeError) -> HTTPException:
    """Map a service error onto an HTTP response."""
    if isinstance(error, StageConflictError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ProviderError):
        code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(error, TransportError):
        code = status.HTTP_504_GATEWAY_TIMEOUT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))
