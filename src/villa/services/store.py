"""Document store service wrapping the MongoDB collections used by Villa.

This module provides a service class (MongoStore) that owns the database
handle and encapsulates:
- Client construction from settings and teardown
- Collection access for Islanders, Users and Posts
- Index management
- Connectivity checks
- Monitoring metrics and driver error translation

The store is created once per process by the service container and closed at
shutdown; nothing else holds a connection.
"""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from prometheus_client import Counter, Histogram
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from ..core.exceptions import StorageError
from ..core.logging import ContextLogger
from ..core.settings import MongoSettings

logger = ContextLogger(__name__)

ISLANDERS = "Islanders"
USERS = "Users"
POSTS = "Posts"

store_operations = Counter(
    "villa_store_operations_total",
    "Total number of document store operations",
    ["collection", "operation", "status"],
)

store_operation_duration = Histogram(
    "villa_store_operation_duration_seconds",
    "Document store operation duration in seconds",
    ["collection", "operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)


def parse_object_id(value: str) -> ObjectId | None:
    """Return the ObjectId for a path identifier, or None if malformed."""
    if not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


class MongoStore:
    """Service for accessing the Villa document store.

    Attributes:
        database: Motor database handle (or any object with the same API).
        client: Owning client, closed by ``close()``; ``None`` when the
            database handle was supplied by the caller.
    """

    def __init__(self, database: Any, client: Any | None = None) -> None:
        self.database = database
        self.client = client

    @classmethod
    def from_settings(cls, mongo: MongoSettings) -> "MongoStore":
        """Build a store with its own client from connection settings.

        The motor client connects lazily, so this never blocks.
        """
        client = AsyncIOMotorClient(
            mongo.uri,
            tz_aware=True,
            serverSelectionTimeoutMS=mongo.server_selection_timeout_ms,
        )
        logger.info(
            "Document store client created", extra={"database": mongo.database}
        )
        return cls(client[mongo.database], client=client)

    @property
    def islanders(self) -> Any:
        return self.database[ISLANDERS]

    @property
    def users(self) -> Any:
        return self.database[USERS]

    @property
    def posts(self) -> Any:
        return self.database[POSTS]

    @asynccontextmanager
    async def operation(self, collection: str, op: str) -> AsyncIterator[None]:
        """Time and count one store operation, translating driver errors.

        Args:
            collection: Collection name used as a metric label.
            op: Operation name used as a metric label.

        Raises:
            StorageError: If the driver raised a PyMongoError.
        """
        start = time.perf_counter()
        status = "success"
        try:
            yield
        except PyMongoError as e:
            status = "error"
            logger.exception(
                "Document store operation failed",
                extra={"collection": collection, "operation": op},
            )
            raise StorageError(
                f"{op} on {collection} failed: {e}",
                details={"collection": collection, "operation": op},
            ) from e
        except Exception:
            status = "error"
            raise
        finally:
            store_operations.labels(collection, op, status).inc()
            store_operation_duration.labels(collection, op).observe(
                time.perf_counter() - start
            )

    async def ensure_indexes(self) -> None:
        """Create the indexes used by feed queries (idempotent)."""
        async with self.operation(POSTS, "create_index"):
            await self.posts.create_index([("datetime", DESCENDING)])
            await self.posts.create_index(
                [("username", ASCENDING), ("datetime", DESCENDING)]
            )
        logger.info("Document store indexes ensured")

    async def ping(self) -> bool:
        """Return True when the store answers a ping command."""
        try:
            await self.database.command("ping")
        except Exception as e:
            logger.warning("Document store ping failed", extra={"error": str(e)})
            return False
        return True

    def close(self) -> None:
        """Close the owning client, if any."""
        if self.client is not None:
            self.client.close()
            logger.info("Document store client closed")
            self.client = None
