"""Service layer for the post feed.

This module provides a service class (PostService) that encapsulates the
feed operations:

- Listing posts newest first, globally or per owner
- Listing the posts a user has reacted ``up`` to
- Creating posts and appending replies
- Applying like/dislike reactions through the engagement state machine

Reactions are a read-modify-write of one post document with no version
check: concurrent reactions on the same post race and the last write wins.
"""

from datetime import UTC, datetime
from typing import Any

from pymongo import DESCENDING, ReturnDocument

from ..core.exceptions import PostNotFoundError, UserNotFoundError
from ..core.logging import ContextLogger
from ..schemas.posts import PostResponse
from .engagement import Reaction, ReactionOutcome, apply_reaction
from .store import POSTS, USERS, MongoStore, parse_object_id

logger = ContextLogger(__name__)

MAX_PAGE_SIZE = 100


class PostService:
    """Service class for handling feed operations."""

    def __init__(self, store: MongoStore) -> None:
        self.store = store

    async def list_posts(
        self,
        viewer: str | None = None,
        skip: int = 0,
        limit: int = MAX_PAGE_SIZE,
    ) -> list[PostResponse]:
        """List posts newest first, tagging each with the viewer's reaction."""
        return await self._find({}, viewer, skip=skip, limit=limit)

    async def get_post(self, post_id: str, viewer: str | None = None) -> PostResponse:
        """Fetch one post.

        Raises:
            PostNotFoundError: If the id is malformed or unknown.
        """
        doc = await self._load(post_id)
        return PostResponse.from_document(doc, viewer)

    async def create_post(self, username: str, name: str, message: str) -> PostResponse:
        """Create a post owned by ``username``."""
        doc: dict[str, Any] = {
            "username": username,
            "name": name,
            "message": message,
            "datetime": datetime.now(UTC),
            "replies": [],
            "likes": 0,
            "reactions": {},
        }
        async with self.store.operation(POSTS, "insert_one"):
            result = await self.store.posts.insert_one(doc)
        doc["_id"] = result.inserted_id

        logger.info(
            "Post created",
            extra={"post_id": str(result.inserted_id), "username": username},
        )
        return PostResponse.from_document(doc, username)

    async def add_reply(self, post_id: str, username: str, message: str) -> PostResponse:
        """Append a reply to a post and return the updated post.

        Raises:
            PostNotFoundError: If the post does not exist.
        """
        oid = self._object_id(post_id)
        reply = {
            "username": username,
            "message": message,
            "datetime": datetime.now(UTC),
        }
        async with self.store.operation(POSTS, "find_one_and_update"):
            doc = await self.store.posts.find_one_and_update(
                {"_id": oid},
                {"$push": {"replies": reply}},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            raise PostNotFoundError(
                f"Post {post_id} not found", details={"post_id": post_id}
            )

        logger.info("Reply added", extra={"post_id": post_id, "username": username})
        return PostResponse.from_document(doc, username)

    async def react(
        self, post_id: str, username: str, reaction: str | Reaction | None
    ) -> ReactionOutcome:
        """Apply a reaction from ``username`` and persist the new state.

        Raises:
            InvalidReactionError: If the reaction is not up, down or none.
            PostNotFoundError: If the post does not exist.
        """
        doc = await self._load(post_id)
        outcome = apply_reaction(
            doc.get("reactions"), doc.get("likes", 0), username, reaction
        )

        async with self.store.operation(POSTS, "update_one"):
            await self.store.posts.update_one(
                {"_id": doc["_id"]},
                {"$set": {"likes": outcome.likes, "reactions": outcome.reactions}},
            )

        logger.info(
            "Reaction applied",
            extra={
                "post_id": post_id,
                "username": username,
                "reaction": outcome.reaction.value,
                "likes": outcome.likes,
            },
        )
        return outcome

    async def list_user_posts(
        self, username: str, viewer: str | None = None
    ) -> list[PostResponse]:
        """List posts owned by ``username``, newest first.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        await self._require_user(username)
        return await self._find({"username": username}, viewer)

    async def list_liked_posts(
        self, username: str, viewer: str | None = None
    ) -> list[PostResponse]:
        """List posts ``username`` currently reacts ``up`` to, newest first.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        await self._require_user(username)
        return await self._find({f"reactions.{username}": Reaction.UP.value}, viewer)

    async def _find(
        self,
        criteria: dict[str, Any],
        viewer: str | None,
        skip: int = 0,
        limit: int = MAX_PAGE_SIZE,
    ) -> list[PostResponse]:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        async with self.store.operation(POSTS, "find"):
            docs = await (
                self.store.posts.find(criteria)
                .sort("datetime", DESCENDING)
                .skip(max(0, skip))
                .limit(limit)
                .to_list(limit)
            )
        return [PostResponse.from_document(doc, viewer) for doc in docs]

    async def _load(self, post_id: str) -> dict[str, Any]:
        oid = self._object_id(post_id)
        async with self.store.operation(POSTS, "find_one"):
            doc = await self.store.posts.find_one({"_id": oid})
        if doc is None:
            raise PostNotFoundError(
                f"Post {post_id} not found", details={"post_id": post_id}
            )
        return doc

    async def _require_user(self, username: str) -> None:
        async with self.store.operation(USERS, "find_one"):
            doc = await self.store.users.find_one({"_id": username}, {"_id": 1})
        if doc is None:
            raise UserNotFoundError(
                f"User {username} not found", details={"username": username}
            )

    @staticmethod
    def _object_id(post_id: str):
        oid = parse_object_id(post_id)
        if oid is None:
            raise PostNotFoundError(
                f"Post {post_id} not found", details={"post_id": post_id}
            )
        return oid
