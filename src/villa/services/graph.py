"""Follow graph maintenance.

Every follow edge is stored twice: the follower's username in the target's
``followers`` list and the target's username in the follower's
``following`` list. The two lists live in different documents and the store
offers no multi-document atomicity here, so each change is written to the
target first and then to the actor. When the second write fails, the first
is undone with the opposite operator before the error is raised.
"""

from dataclasses import dataclass

from prometheus_client import Counter

from ..core.exceptions import (
    SelfFollowError,
    SelfUnfollowError,
    StorageError,
    UserNotFoundError,
)
from ..core.logging import ContextLogger
from .store import USERS, MongoStore

logger = ContextLogger(__name__)

follow_changes = Counter(
    "villa_follow_changes_total",
    "Follow graph changes, by action",
    ["action"],
)


@dataclass(frozen=True)
class FollowResult:
    """Outcome of a follow or unfollow request."""

    actor: str
    target: str
    following: bool


class SocialGraph:
    """Adds and removes symmetric follower/following edges between users."""

    def __init__(self, store: MongoStore) -> None:
        self.store = store

    async def follow(self, actor: str, target: str) -> FollowResult:
        """Make ``actor`` follow ``target``. Repeating it is a no-op.

        Raises:
            SelfFollowError: If actor and target are the same user.
            UserNotFoundError: If either user does not exist.
            StorageError: If a write fails.
        """
        if actor == target:
            raise SelfFollowError("You cannot follow yourself")
        await self._require_users(actor, target)
        await self._update_edge(actor, target, "$addToSet", "$pull")
        follow_changes.labels("follow").inc()
        logger.info("User followed", extra={"actor": actor, "target": target})
        return FollowResult(actor=actor, target=target, following=True)

    async def unfollow(self, actor: str, target: str) -> FollowResult:
        """Remove the ``actor`` -> ``target`` edge. Missing edges are a no-op.

        Raises:
            SelfUnfollowError: If actor and target are the same user.
            UserNotFoundError: If either user does not exist.
            StorageError: If a write fails.
        """
        if actor == target:
            raise SelfUnfollowError("You cannot unfollow yourself")
        await self._require_users(actor, target)
        await self._update_edge(actor, target, "$pull", "$addToSet")
        follow_changes.labels("unfollow").inc()
        logger.info("User unfollowed", extra={"actor": actor, "target": target})
        return FollowResult(actor=actor, target=target, following=False)

    async def _require_users(self, *usernames: str) -> None:
        for username in usernames:
            async with self.store.operation(USERS, "find_one"):
                found = await self.store.users.find_one(
                    {"_id": username}, {"_id": 1}
                )
            if found is None:
                raise UserNotFoundError(
                    f"User {username} not found", details={"username": username}
                )

    async def _update_edge(
        self, actor: str, target: str, operator: str, undo_operator: str
    ) -> None:
        async with self.store.operation(USERS, "update_one"):
            first = await self.store.users.update_one(
                {"_id": target}, {operator: {"followers": actor}}
            )

        try:
            async with self.store.operation(USERS, "update_one"):
                await self.store.users.update_one(
                    {"_id": actor}, {operator: {"following": target}}
                )
        except StorageError:
            if first.modified_count:
                await self._compensate(actor, target, undo_operator)
            raise

    async def _compensate(self, actor: str, target: str, undo_operator: str) -> None:
        logger.warning(
            "Rolling back follower edge after failed write",
            extra={"actor": actor, "target": target},
        )
        try:
            async with self.store.operation(USERS, "update_one"):
                await self.store.users.update_one(
                    {"_id": target}, {undo_operator: {"followers": actor}}
                )
        except StorageError:
            # The failed write is re-raised by the caller
            logger.error(
                "Rollback failed, follow graph left one-sided",
                extra={"actor": actor, "target": target},
            )
