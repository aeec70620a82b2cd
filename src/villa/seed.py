"""Seed the Islander catalog from a JSON file.

The file holds a list of cast member records:

    [{"first_name": "Amber", "last_name": "Gill", "age": 21,
      "astrology_sign": "Libra", "hometown": "Newcastle",
      "episode_entered": 1, "episode_left": 56, "image": "amber.jpg"}]

Usage:
    villa-seed islanders.json            # append records
    villa-seed islanders.json --replace  # clear the catalog first
    villa-seed --check                   # only verify the store is reachable
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from pydantic import TypeAdapter

from .core.logging import ContextLogger, setup_logging
from .core.settings import settings
from .schemas.islanders import IslanderSeed
from .services.islanders import IslanderService
from .services.store import MongoStore

logger = ContextLogger(__name__)

_records = TypeAdapter(list[IslanderSeed])


def load_records(path: Path) -> list[IslanderSeed]:
    """Read and validate seed records from ``path``."""
    with open(path, encoding="utf-8") as f:
        return _records.validate_python(json.load(f))


async def run(
    path: Path | None,
    replace: bool = False,
    check_only: bool = False,
    store: MongoStore | None = None,
) -> int:
    """Seed the catalog; returns a process exit code."""
    store = store or MongoStore.from_settings(settings.mongo)
    try:
        if not await store.ping():
            logger.error(
                "Document store unreachable",
                extra={"database": settings.mongo.database},
            )
            return 1
        if check_only:
            logger.info("Document store reachable")
            return 0
        if path is None:
            logger.error("No seed file given")
            return 2

        records = load_records(path)
        inserted = await IslanderService(store).seed(records, replace=replace)
        logger.info(
            "Seeding finished", extra={"inserted": inserted, "source": str(path)}
        )
        return 0
    finally:
        store.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the Islander catalog")
    parser.add_argument(
        "path", nargs="?", type=Path, help="JSON file with islander records"
    )
    parser.add_argument(
        "--replace", action="store_true", help="delete existing islanders first"
    )
    parser.add_argument(
        "--check", action="store_true", help="only ping the document store"
    )
    args = parser.parse_args(argv)

    setup_logging()
    return asyncio.run(run(args.path, args.replace, args.check))


if __name__ == "__main__":
    sys.exit(main())
