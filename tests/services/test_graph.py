"""Tests for follow graph maintenance."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from pymongo.errors import PyMongoError

from villa.core.exceptions import (
    SelfFollowError,
    SelfUnfollowError,
    StorageError,
    UserNotFoundError,
)
from villa.services.graph import SocialGraph
from villa.services.store import MongoStore


async def add_user(store: MongoStore, username: str) -> None:
    await store.users.insert_one(
        {"_id": username, "username": username, "followers": [], "following": []}
    )


async def edges(store: MongoStore, username: str) -> tuple[list[str], list[str]]:
    doc = await store.users.find_one({"_id": username})
    return doc["followers"], doc["following"]


@pytest_asyncio.fixture
async def graph(store: MongoStore) -> SocialGraph:
    for username in ("alice", "bob", "carol"):
        await add_user(store, username)
    return SocialGraph(store)


@pytest.mark.asyncio
async def test_follow_updates_both_sides(graph: SocialGraph, store: MongoStore) -> None:
    result = await graph.follow("bob", "alice")

    assert result.following is True
    assert (await edges(store, "alice"))[0] == ["bob"]
    assert (await edges(store, "bob"))[1] == ["alice"]


@pytest.mark.asyncio
async def test_follow_is_idempotent(graph: SocialGraph, store: MongoStore) -> None:
    await graph.follow("bob", "alice")
    result = await graph.follow("bob", "alice")

    assert result.following is True
    assert (await edges(store, "alice"))[0] == ["bob"]
    assert (await edges(store, "bob"))[1] == ["alice"]


@pytest.mark.asyncio
async def test_unfollow_removes_both_sides(graph: SocialGraph, store: MongoStore) -> None:
    await graph.follow("bob", "alice")
    result = await graph.unfollow("bob", "alice")

    assert result.following is False
    assert await edges(store, "alice") == ([], [])
    assert await edges(store, "bob") == ([], [])


@pytest.mark.asyncio
async def test_unfollow_without_edge_is_noop(graph: SocialGraph, store: MongoStore) -> None:
    result = await graph.unfollow("bob", "alice")

    assert result.following is False
    assert await edges(store, "alice") == ([], [])


@pytest.mark.asyncio
async def test_symmetry_holds_after_mixed_sequence(
    graph: SocialGraph, store: MongoStore
) -> None:
    await graph.follow("bob", "alice")
    await graph.follow("carol", "alice")
    await graph.follow("alice", "carol")
    await graph.unfollow("bob", "alice")
    await graph.follow("bob", "carol")
    await graph.follow("bob", "carol")

    users = ("alice", "bob", "carol")
    state = {u: await edges(store, u) for u in users}
    for a in users:
        for b in users:
            a_in_b_followers = a in state[b][0]
            b_in_a_following = b in state[a][1]
            assert a_in_b_followers == b_in_a_following
    assert sorted(state["carol"][0]) == ["alice", "bob"]


@pytest.mark.asyncio
async def test_self_follow_rejected(graph: SocialGraph, store: MongoStore) -> None:
    with pytest.raises(SelfFollowError):
        await graph.follow("alice", "alice")
    with pytest.raises(SelfUnfollowError):
        await graph.unfollow("alice", "alice")

    assert await edges(store, "alice") == ([], [])


@pytest.mark.asyncio
@pytest.mark.parametrize("actor,target", [("ghost", "alice"), ("alice", "ghost")])
async def test_missing_user_rejected(
    graph: SocialGraph, store: MongoStore, actor: str, target: str
) -> None:
    with pytest.raises(UserNotFoundError):
        await graph.follow(actor, target)

    assert await edges(store, "alice") == ([], [])


CHANGED = SimpleNamespace(modified_count=1)


def mocked_store(update_results: list[object]) -> tuple[MongoStore, MagicMock]:
    users = MagicMock()
    users.find_one = AsyncMock(return_value={"_id": "someone"})
    users.update_one = AsyncMock(side_effect=update_results)
    database = MagicMock()
    database.__getitem__.return_value = users
    return MongoStore(database), users


@pytest.mark.asyncio
async def test_failed_second_write_rolls_back_first() -> None:
    store, users = mocked_store([CHANGED, PyMongoError("boom"), CHANGED])

    with pytest.raises(StorageError):
        await SocialGraph(store).follow("bob", "alice")

    calls = users.update_one.await_args_list
    assert len(calls) == 3
    assert calls[0].args == ({"_id": "alice"}, {"$addToSet": {"followers": "bob"}})
    assert calls[1].args == ({"_id": "bob"}, {"$addToSet": {"following": "alice"}})
    assert calls[2].args == ({"_id": "alice"}, {"$pull": {"followers": "bob"}})


@pytest.mark.asyncio
async def test_failed_unfollow_restores_follower() -> None:
    store, users = mocked_store([CHANGED, PyMongoError("boom"), CHANGED])

    with pytest.raises(StorageError):
        await SocialGraph(store).unfollow("bob", "alice")

    assert users.update_one.await_args_list[2].args == (
        {"_id": "alice"},
        {"$addToSet": {"followers": "bob"}},
    )


@pytest.mark.asyncio
async def test_no_rollback_when_first_write_changed_nothing() -> None:
    store, users = mocked_store([SimpleNamespace(modified_count=0), PyMongoError("boom")])

    with pytest.raises(StorageError):
        await SocialGraph(store).follow("bob", "alice")

    assert users.update_one.await_count == 2


@pytest.mark.asyncio
async def test_failed_rollback_still_raises_write_error() -> None:
    store, users = mocked_store([CHANGED, PyMongoError("boom"), PyMongoError("again")])

    with pytest.raises(StorageError, match="boom"):
        await SocialGraph(store).follow("bob", "alice")

    assert users.update_one.await_count == 3
