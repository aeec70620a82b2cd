"""Schema definitions for feed posts, replies and reactions."""

import datetime as dt
from typing import Any

from pydantic import Field

from ..services.engagement import Reaction, current_reaction
from .base import CamelModel


class PostCreate(CamelModel):
    """Schema for creating a post."""

    name: str = Field(..., min_length=1, description="Display name shown on the post")
    message: str = Field(..., min_length=1, description="Post text")


class ReplyCreate(CamelModel):
    """Schema for appending a reply."""

    message: str = Field(..., min_length=1, description="Reply text")


class ReactionRequest(CamelModel):
    """Schema for a reaction request; null means no reaction."""

    reaction: str | None = Field(None, description="up, down, none or null")


class ReplyResponse(CamelModel):
    username: str
    message: str
    datetime: dt.datetime


class PostResponse(CamelModel):
    """Schema for a post as seen by a particular viewer."""

    id: str
    username: str
    name: str | None = None
    message: str | None = None
    datetime: dt.datetime
    replies: list[ReplyResponse] = Field(default_factory=list)
    likes: int = 0
    user_reaction: str | None = Field(
        None, description="The viewer's reaction, null if none or anonymous"
    )

    @classmethod
    def from_document(
        cls, doc: dict[str, Any], viewer: str | None = None
    ) -> "PostResponse":
        reaction = None
        if viewer is not None:
            state = current_reaction(doc.get("reactions") or {}, viewer)
            reaction = None if state is Reaction.NONE else state.value
        return cls(
            id=str(doc["_id"]),
            username=doc["username"],
            name=doc.get("name"),
            message=doc.get("message"),
            datetime=doc["datetime"],
            replies=[ReplyResponse(**reply) for reply in doc.get("replies") or []],
            likes=doc.get("likes", 0),
            user_reaction=reaction,
        )


class ReactionResponse(CamelModel):
    """Schema for the result of a reaction request."""

    likes: int
    user_reaction: str | None = None
