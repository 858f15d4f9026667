"""Health check endpoint for monitoring service status."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from relay.managers.connection_registry import connection_registry
from relay.managers.room_store import room_store

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    rooms: int
    members: int
    connections: int


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check() -> HealthResponse:
    """
    Report that the relay is serving, with its current occupancy.

    The relay keeps all state in process memory and has no downstream
    dependencies, so it is healthy whenever it can answer.
    """
    return HealthResponse(
        status="healthy",
        rooms=room_store.room_count(),
        members=room_store.member_count(),
        connections=len(connection_registry),
    )
