"""User directory and follow graph endpoints.

This module provides RESTful API endpoints for browsing other users:

Core Features:
- Case-insensitive user search across username, names and email
- Profile lookup by username
- A user's own posts and the posts they have liked
- Following and unfollowing

Authentication & Authorization:
    Every endpoint requires a valid bearer token. Follow and unfollow always
    act on behalf of the token's user.

Example Usage:
    Search users:
        GET /api/users/search?q=ali

    Follow a user:
        POST /api/users/alice/follow
"""

from fastapi import APIRouter, Depends, Path, Query

from ..core.dependencies import get_post_service, get_user_service
from ..core.logging import ContextLogger
from ..core.security import TokenData, get_current_user
from ..schemas.posts import PostResponse
from ..schemas.users import FollowResponse, UserProfile
from ..services.posts import PostService
from ..services.users import SEARCH_LIMIT, UserService

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={
        401: {"description": "Missing bearer token"},
        403: {"description": "Invalid token"},
        404: {"description": "User not found"},
        500: {"description": "Internal server error"},
    },
)

logger = ContextLogger(__name__)


@router.get(
    "/search",
    response_model=list[UserProfile],
    responses={400: {"description": "Empty query"}},
    summary="Search users",
    description=f"Case-insensitive substring search, at most {SEARCH_LIMIT} results",
)
async def search_users(
    q: str = Query("", description="Text to look for"),
    caller: TokenData = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> list[UserProfile]:
    async with logger.track_time("search_users"):
        return await service.search(q)


@router.get("/{username}", response_model=UserProfile, summary="Get a user")
async def get_user(
    username: str = Path(..., description="Username"),
    caller: TokenData = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> UserProfile:
    return await service.get_profile(username)


@router.get(
    "/{username}/posts",
    response_model=list[PostResponse],
    summary="List a user's posts",
)
async def list_user_posts(
    username: str = Path(..., description="Username"),
    caller: TokenData = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
) -> list[PostResponse]:
    return await service.list_user_posts(username, caller.username)


@router.get(
    "/{username}/likes",
    response_model=list[PostResponse],
    summary="List posts a user liked",
)
async def list_liked_posts(
    username: str = Path(..., description="Username"),
    caller: TokenData = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
) -> list[PostResponse]:
    return await service.list_liked_posts(username, caller.username)


@router.post(
    "/{username}/follow",
    response_model=FollowResponse,
    responses={400: {"description": "Cannot follow yourself"}},
    summary="Follow a user",
)
async def follow_user(
    username: str = Path(..., description="User to follow"),
    caller: TokenData = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> FollowResponse:
    """Add the caller to ``username``'s followers and ``username`` to the
    caller's following list. Following someone twice is not an error.
    """
    result = await service.follow(caller.username, username)
    return FollowResponse(
        message=f"You are now following {result.target}",
        username=result.target,
        following=result.following,
    )


@router.post(
    "/{username}/unfollow",
    response_model=FollowResponse,
    responses={400: {"description": "Cannot unfollow yourself"}},
    summary="Unfollow a user",
)
async def unfollow_user(
    username: str = Path(..., description="User to unfollow"),
    caller: TokenData = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> FollowResponse:
    result = await service.unfollow(caller.username, username)
    return FollowResponse(
        message=f"You unfollowed {result.target}",
        username=result.target,
        following=result.following,
    )
