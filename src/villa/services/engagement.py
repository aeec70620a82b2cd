"""Reaction bookkeeping for posts.

Each (post, user) pair is in one of three states: no reaction, up or down.
Requesting the state a user is already in retracts it; requesting a
different state switches to it. The post's ``likes`` counter is moved by
reversible deltas:

- removing an up reaction subtracts 1, never going below zero
- removing a down reaction adds 1
- setting an up reaction adds 1
- setting a down reaction subtracts 1, with no floor

The floor on up-removal and the missing floor on down-application are not
symmetric, so ``likes`` can drift negative. Existing counters depend on this
arithmetic; keep it unless the stored data is migrated.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from prometheus_client import Counter

from ..core.exceptions import InvalidReactionError

reactions_applied = Counter(
    "villa_reactions_total",
    "Reactions applied to posts, by resulting state",
    ["reaction"],
)


class Reaction(str, Enum):
    """A user's reaction to a post."""

    UP = "up"
    DOWN = "down"
    NONE = "none"


@dataclass(frozen=True)
class ReactionOutcome:
    """Result of applying a reaction request to a post."""

    likes: int
    reaction: Reaction
    reactions: dict[str, str] = field(default_factory=dict)

    @property
    def user_reaction(self) -> str | None:
        """Caller's reaction as exposed by the API (None when retracted)."""
        return None if self.reaction is Reaction.NONE else self.reaction.value


def parse_reaction(value: str | Reaction | None) -> Reaction:
    """Convert a requested reaction to a Reaction.

    ``None`` and ``"none"`` both mean no reaction.

    Raises:
        InvalidReactionError: If the value is not up, down or none.
    """
    if value is None:
        return Reaction.NONE
    if isinstance(value, Reaction):
        return value
    try:
        return Reaction(value)
    except ValueError as e:
        raise InvalidReactionError(
            f"Invalid reaction: {value!r}",
            details={"allowed": [r.value for r in Reaction]},
        ) from e


def current_reaction(reactions: Mapping[str, str], username: str) -> Reaction:
    """Return the stored reaction of a user, NONE if absent or unrecognised."""
    stored = reactions.get(username)
    if stored in (Reaction.UP.value, Reaction.DOWN.value):
        return Reaction(stored)
    return Reaction.NONE


def next_reaction(previous: Reaction, requested: Reaction) -> Reaction:
    """Transition function: requesting the current state retracts it."""
    if requested is previous:
        return Reaction.NONE
    return requested


def adjust_likes(likes: int, previous: Reaction, new: Reaction) -> int:
    """Apply the counter deltas for moving from ``previous`` to ``new``."""
    if previous is new:
        return likes
    if previous is Reaction.UP:
        likes = max(0, likes - 1)
    elif previous is Reaction.DOWN:
        likes += 1
    if new is Reaction.UP:
        likes += 1
    elif new is Reaction.DOWN:
        likes -= 1
    return likes


def apply_reaction(
    reactions: Mapping[str, str] | None,
    likes: int,
    username: str,
    requested: str | Reaction | None,
) -> ReactionOutcome:
    """Apply a reaction request from ``username`` to a post's state.

    Args:
        reactions: Current username -> reaction mapping of the post. Not
            mutated.
        likes: Current aggregate counter of the post.
        username: Acting user.
        requested: ``"up"``, ``"down"``, ``"none"`` or ``None``.

    Returns:
        ReactionOutcome with the new counter, the caller's new state and the
        new mapping.

    Raises:
        InvalidReactionError: If ``requested`` is not a known reaction.
    """
    wanted = parse_reaction(requested)
    reactions = dict(reactions or {})
    previous = current_reaction(reactions, username)
    new = next_reaction(previous, wanted)

    if new is Reaction.NONE:
        reactions.pop(username, None)
    else:
        reactions[username] = new.value

    reactions_applied.labels(new.value).inc()
    return ReactionOutcome(
        likes=adjust_likes(likes, previous, new),
        reaction=new,
        reactions=reactions,
    )
