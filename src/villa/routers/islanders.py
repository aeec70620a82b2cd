"""Public, read-only cast catalog endpoints."""

from fastapi import APIRouter, Depends, Path

from ..core.dependencies import get_islander_service
from ..schemas.islanders import IslanderResponse
from ..services.islanders import IslanderService

router = APIRouter(
    prefix="/islanders",
    tags=["islanders"],
    responses={500: {"description": "Internal server error"}},
)


@router.get("", response_model=list[IslanderResponse], summary="List islanders")
async def list_islanders(
    service: IslanderService = Depends(get_islander_service),
) -> list[IslanderResponse]:
    return await service.list_islanders()


@router.get(
    "/{islander_id}",
    response_model=IslanderResponse,
    responses={404: {"description": "Islander not found"}},
    summary="Get an islander",
)
async def get_islander(
    islander_id: str = Path(..., description="Islander identifier"),
    service: IslanderService = Depends(get_islander_service),
) -> IslanderResponse:
    return await service.get_islander(islander_id)
