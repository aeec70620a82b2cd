"""Service module for handling user-related operations.

This module provides a UserService class that encapsulates the business logic
for profile reads and updates, user search and the follow graph:

- Fetching a user's profile by username
- Updating the mutable fields of the caller's own profile
- Case-insensitive substring search across name, username and email
- Following and unfollowing, delegated to SocialGraph

Credential material never leaves this module: every read projects the
password hash away.
"""

import re
from typing import Any

from pymongo import ReturnDocument

from ..core.exceptions import UserNotFoundError, ValidationError
from ..core.logging import ContextLogger
from ..core.security import hash_password
from ..schemas.users import ProfileUpdate, UserProfile
from .graph import FollowResult, SocialGraph
from .store import USERS, MongoStore

logger = ContextLogger(__name__)

SEARCH_LIMIT = 20
SEARCH_FIELDS = ("username", "first_name", "last_name", "email")
PUBLIC_PROJECTION = {"password_hash": 0}


class UserService:
    """Service class for handling user-related operations."""

    def __init__(self, store: MongoStore, graph: SocialGraph | None = None) -> None:
        self.store = store
        self.graph = graph or SocialGraph(store)

    async def get_profile(self, username: str) -> UserProfile:
        """Retrieve a user's profile.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        async with self.store.operation(USERS, "find_one"):
            doc = await self.store.users.find_one(
                {"_id": username}, PUBLIC_PROJECTION
            )
        if doc is None:
            raise UserNotFoundError(
                f"User {username} not found", details={"username": username}
            )
        return UserProfile.from_document(doc)

    async def update_profile(self, username: str, changes: ProfileUpdate) -> UserProfile:
        """Apply profile changes for ``username``.

        Only fields present in the request are written; a new password is
        hashed before storage.

        Raises:
            ValidationError: If no fields were supplied.
            UserNotFoundError: If the user does not exist.
        """
        fields: dict[str, Any] = changes.model_dump(exclude_unset=True, exclude_none=True)
        if not fields:
            raise ValidationError("No profile fields supplied")

        password = fields.pop("password", None)
        if password is not None:
            fields["password_hash"] = hash_password(password)

        async with self.store.operation(USERS, "find_one_and_update"):
            doc = await self.store.users.find_one_and_update(
                {"_id": username},
                {"$set": fields},
                projection=PUBLIC_PROJECTION,
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            raise UserNotFoundError(
                f"User {username} not found", details={"username": username}
            )

        updated = sorted(k for k in fields if k != "password_hash")
        logger.info(
            "Profile updated", extra={"username": username, "fields": updated}
        )
        return UserProfile.from_document(doc)

    async def search(self, query: str) -> list[UserProfile]:
        """Find users whose username, name or email contains ``query``.

        Matching is case-insensitive and literal; at most 20 users are
        returned.

        Raises:
            ValidationError: If the query is blank.
        """
        query = (query or "").strip()
        if not query:
            raise ValidationError("Search query must not be empty")

        pattern = {"$regex": re.escape(query), "$options": "i"}
        criteria = {"$or": [{field: pattern} for field in SEARCH_FIELDS]}

        async with self.store.operation(USERS, "find"):
            docs = await (
                self.store.users.find(criteria, PUBLIC_PROJECTION)
                .sort("_id", 1)
                .limit(SEARCH_LIMIT)
                .to_list(SEARCH_LIMIT)
            )
        return [UserProfile.from_document(doc) for doc in docs]

    async def exists(self, username: str) -> bool:
        async with self.store.operation(USERS, "find_one"):
            doc = await self.store.users.find_one({"_id": username}, {"_id": 1})
        return doc is not None

    async def follow(self, actor: str, target: str) -> FollowResult:
        return await self.graph.follow(actor, target)

    async def unfollow(self, actor: str, target: str) -> FollowResult:
        return await self.graph.unfollow(actor, target)
