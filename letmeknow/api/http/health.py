"""Health check endpoint for monitoring service status."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from letmeknow.managers.client_registry import client_registry

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    connected_clients: int
    registered_clients: int


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check() -> HealthResponse:
    """
    Report service status and the size of the client registry.

    The relay has no external dependencies, so it is healthy whenever it
    can answer.
    """
    connected, registered = await client_registry.counts()

    return HealthResponse(
        status="healthy",
        connected_clients=connected,
        registered_clients=registered,
    )
