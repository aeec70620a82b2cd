from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from villa import seed
from villa.services.store import MongoStore

RECORDS = [
    {
        "first_name": "Amber",
        "last_name": "Gill",
        "age": 21,
        "astrology_sign": "Libra",
        "hometown": "Newcastle",
        "episode_entered": 1,
        "episode_left": 56,
        "image": "amber.jpg",
    },
    {"first_name": "Ovie", "last_name": "Soko", "age": 28},
]


@pytest.fixture
def seed_file(tmp_path: Path) -> Path:
    path = tmp_path / "islanders.json"
    path.write_text(json.dumps(RECORDS), encoding="utf-8")
    return path


@pytest.fixture
def reachable(store: MongoStore, monkeypatch: pytest.MonkeyPatch) -> MongoStore:
    monkeypatch.setattr(store, "ping", AsyncMock(return_value=True))
    return store


def test_load_records_validates(seed_file: Path) -> None:
    records = seed.load_records(seed_file)

    assert [r.first_name for r in records] == ["Amber", "Ovie"]
    assert records[1].hometown is None


def test_load_records_rejects_bad_input(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps([{"age": "old"}]), encoding="utf-8")

    with pytest.raises(ValueError):
        seed.load_records(path)


@pytest.mark.asyncio
async def test_run_inserts_records(reachable: MongoStore, seed_file: Path) -> None:
    code = await seed.run(seed_file, store=reachable)

    assert code == 0
    docs = await reachable.islanders.find({}).to_list(None)
    assert sorted(d["first_name"] for d in docs) == ["Amber", "Ovie"]


@pytest.mark.asyncio
async def test_run_replace_clears_catalog(
    reachable: MongoStore, seed_file: Path
) -> None:
    await reachable.islanders.insert_one({"first_name": "Old"})

    code = await seed.run(seed_file, replace=True, store=reachable)

    assert code == 0
    docs = await reachable.islanders.find({}).to_list(None)
    assert sorted(d["first_name"] for d in docs) == ["Amber", "Ovie"]


@pytest.mark.asyncio
async def test_run_check_only(reachable: MongoStore, seed_file: Path) -> None:
    code = await seed.run(seed_file, check_only=True, store=reachable)

    assert code == 0
    assert await reachable.islanders.count_documents({}) == 0


@pytest.mark.asyncio
async def test_run_without_path(reachable: MongoStore) -> None:
    assert await seed.run(None, store=reachable) == 2


@pytest.mark.asyncio
async def test_run_unreachable_store(
    store: MongoStore, seed_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(store, "ping", AsyncMock(return_value=False))

    assert await seed.run(seed_file, store=store) == 1
    assert await store.islanders.count_documents({}) == 0


def test_main_parses_arguments(
    seed_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    captured: dict[str, object] = {}

    async def fake_run(path, replace=False, check_only=False, store=None):
        captured.update(path=path, replace=replace, check_only=check_only)
        return 0

    monkeypatch.setattr(seed, "run", fake_run)
    monkeypatch.setattr(seed, "setup_logging", lambda: None)

    assert seed.main([str(seed_file), "--replace"]) == 0
    assert captured == {"path": seed_file, "replace": True, "check_only": False}
