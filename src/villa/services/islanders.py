"""Read-only access to the Islander (cast member) catalog."""

from collections.abc import Iterable

from ..core.exceptions import IslanderNotFoundError
from ..core.logging import ContextLogger
from ..schemas.islanders import IslanderResponse, IslanderSeed
from .store import ISLANDERS, MongoStore, parse_object_id

logger = ContextLogger(__name__)


class IslanderService:
    """Serves the cast catalog; records change only through seeding."""

    def __init__(self, store: MongoStore) -> None:
        self.store = store

    async def list_islanders(self) -> list[IslanderResponse]:
        async with self.store.operation(ISLANDERS, "find"):
            docs = await self.store.islanders.find({}).to_list(None)
        logger.debug("Fetched islanders", extra={"count": len(docs)})
        return [IslanderResponse.from_document(doc) for doc in docs]

    async def get_islander(self, islander_id: str) -> IslanderResponse:
        """Fetch one cast member.

        Raises:
            IslanderNotFoundError: If the id is malformed or unknown.
        """
        oid = parse_object_id(islander_id)
        doc = None
        if oid is not None:
            async with self.store.operation(ISLANDERS, "find_one"):
                doc = await self.store.islanders.find_one({"_id": oid})
        if doc is None:
            raise IslanderNotFoundError(
                "Islander not found", details={"islander_id": islander_id}
            )
        return IslanderResponse.from_document(doc)

    async def seed(self, records: Iterable[IslanderSeed], replace: bool = False) -> int:
        """Insert cast members, optionally clearing the catalog first.

        Returns:
            Number of records inserted.
        """
        docs = [record.model_dump() for record in records]
        if replace:
            async with self.store.operation(ISLANDERS, "delete_many"):
                await self.store.islanders.delete_many({})
        if not docs:
            return 0
        async with self.store.operation(ISLANDERS, "insert_many"):
            result = await self.store.islanders.insert_many(docs)
        inserted = len(result.inserted_ids)
        logger.info("Islanders seeded", extra={"count": inserted, "replace": replace})
        return inserted
