"""Endpoints for the authenticated caller's own profile."""

from fastapi import APIRouter, Depends

from ..core.dependencies import get_user_service
from ..core.logging import ContextLogger
from ..core.security import TokenData, get_current_user
from ..schemas.users import ProfileUpdate, UserProfile
from ..services.users import UserService

router = APIRouter(
    prefix="/profile",
    tags=["profile"],
    responses={
        401: {"description": "Missing bearer token"},
        403: {"description": "Invalid token"},
        404: {"description": "User not found"},
    },
)

logger = ContextLogger(__name__)


@router.get("", response_model=UserProfile, summary="Get own profile")
async def get_profile(
    caller: TokenData = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> UserProfile:
    return await service.get_profile(caller.username)


@router.put(
    "",
    response_model=UserProfile,
    responses={400: {"description": "No or malformed fields"}},
    summary="Update own profile",
    description="Updates first/last name, email, date of birth or password",
)
async def update_profile(
    body: ProfileUpdate,
    caller: TokenData = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> UserProfile:
    logger.info("Processing profile update", extra={"username": caller.username})
    return await service.update_profile(caller.username, body)
