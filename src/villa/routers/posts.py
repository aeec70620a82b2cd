"""Feed endpoints: posts, replies and reactions.

This module provides RESTful API endpoints for the post feed including:
- Listing posts newest first, optionally personalised with the caller's
  reaction
- Retrieving a single post
- Creating posts and appending replies
- Reacting to posts with up, down or no reaction

Authentication:
    Listing is public; a valid bearer token adds ``userReaction`` to each
    post. Creating, replying and reacting require a token.

Example Usage:
    Like a post (sending the same reaction again retracts it):
        POST /api/posts/6650c0ffee0000000000abcd/like
        {"reaction": "up"}

    Response:
        {"likes": 1, "userReaction": "up"}
"""

from fastapi import APIRouter, Depends, Path, Query, status

from ..core.dependencies import get_post_service
from ..core.logging import ContextLogger
from ..core.security import TokenData, get_current_user, get_optional_user
from ..schemas.posts import (
    PostCreate,
    PostResponse,
    ReactionRequest,
    ReactionResponse,
    ReplyCreate,
)
from ..services.posts import MAX_PAGE_SIZE, PostService

router = APIRouter(
    prefix="/posts",
    tags=["posts"],
    responses={
        404: {"description": "Post not found"},
        400: {"description": "Malformed request"},
        500: {"description": "Internal server error"},
    },
)

logger = ContextLogger(__name__)


@router.get(
    "",
    response_model=list[PostResponse],
    summary="List posts",
    description="Lists posts newest first; authenticated callers see their own reaction",
)
async def list_posts(
    skip: int = Query(0, ge=0, description="Number of posts to skip"),
    limit: int = Query(
        MAX_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Maximum posts to return"
    ),
    caller: TokenData | None = Depends(get_optional_user),
    service: PostService = Depends(get_post_service),
) -> list[PostResponse]:
    viewer = caller.username if caller else None
    async with logger.track_time("list_posts"):
        return await service.list_posts(viewer, skip=skip, limit=limit)


@router.get("/{post_id}", response_model=PostResponse, summary="Get a post")
async def get_post(
    post_id: str = Path(..., description="Post identifier"),
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    return await service.get_post(post_id)


@router.post(
    "",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a post",
)
async def create_post(
    body: PostCreate,
    caller: TokenData = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    """Create a post owned by the caller.

    Args:
        body: Display name and message, both required.
        caller: Identity from the bearer token.
        service: PostService instance for handling the request.

    Returns:
        PostResponse: The new post with no likes and no replies.
    """
    return await service.create_post(caller.username, body.name, body.message)


@router.post(
    "/{post_id}/replies",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to a post",
)
async def add_reply(
    body: ReplyCreate,
    post_id: str = Path(..., description="Post identifier"),
    caller: TokenData = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    return await service.add_reply(post_id, caller.username, body.message)


@router.post(
    "/{post_id}/like",
    response_model=ReactionResponse,
    summary="React to a post",
    description=(
        "Sets the caller's reaction to up or down; repeating the current "
        "reaction, or sending null, removes it"
    ),
)
async def react_to_post(
    body: ReactionRequest,
    post_id: str = Path(..., description="Post identifier"),
    caller: TokenData = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
) -> ReactionResponse:
    outcome = await service.react(post_id, caller.username, body.reaction)
    return ReactionResponse(likes=outcome.likes, user_reaction=outcome.user_reaction)
