"""Dependency injection and service initialization for Villa.

This module implements a service container pattern for managing application
dependencies and their lifecycles. The container owns the single document
store handle: it is created when the application starts and closed when it
stops, and every service receives it explicitly.

The module provides:
- ServiceContainer: Main container for managing service instances
- Dependency providers: FastAPI-compatible dependency functions

Example:
    Using dependency injection in FastAPI routes:
        from fastapi import Depends
        from villa.core.dependencies import get_post_service

        @router.get("/posts/{post_id}")
        async def get_post(
            post_id: str,
            service: PostService = Depends(get_post_service)
        ):
            return await service.get_post(post_id)

    Supplying a store in tests:
        container = get_service_container()
        container.initialize(store=MongoStore(mock_database))
"""

from functools import lru_cache
from typing import Any

from villa.core.settings import settings
from villa.services.auth import AuthService
from villa.services.graph import SocialGraph
from villa.services.islanders import IslanderService
from villa.services.posts import PostService
from villa.services.store import MongoStore
from villa.services.users import UserService


class ServiceContainer:
    """Service container for dependency injection and lifecycle management.

    Attributes:
        _services: Internal dictionary storing initialized service instances.
        _initialized: Flag indicating whether the container has been initialized.
    """

    def __init__(self) -> None:
        self._services: dict[str, Any] = {}
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self, store: MongoStore | None = None) -> None:
        """Create the store and all services.

        Idempotent: once initialized, later calls have no effect.

        Args:
            store: Store to use instead of one built from settings.
        """
        if self._initialized:
            return

        store = store or MongoStore.from_settings(settings.mongo)
        graph = SocialGraph(store)

        self._services["store"] = store
        self._services["auth_service"] = AuthService(store)
        self._services["user_service"] = UserService(store, graph)
        self._services["post_service"] = PostService(store)
        self._services["islander_service"] = IslanderService(store)

        self._initialized = True

    def shutdown(self) -> None:
        """Close the store and forget all services."""
        store = self._services.get("store")
        if store is not None:
            store.close()
        self._services.clear()
        self._initialized = False

    def get_service(self, service_name: str) -> Any:
        """Get a service instance by name, initializing on first use."""
        if not self._initialized:
            self.initialize()
        return self._services.get(service_name)

    @property
    def store(self) -> MongoStore:
        return self.get_service("store")

    @property
    def auth_service(self) -> AuthService:
        return self.get_service("auth_service")

    @property
    def user_service(self) -> UserService:
        return self.get_service("user_service")

    @property
    def post_service(self) -> PostService:
        return self.get_service("post_service")

    @property
    def islander_service(self) -> IslanderService:
        return self.get_service("islander_service")


@lru_cache
def get_service_container() -> ServiceContainer:
    """Get cached service container instance.

    Returns:
        ServiceContainer singleton instance.
    """
    return ServiceContainer()


# FastAPI dependency provider functions
def get_auth_service() -> AuthService:
    """FastAPI dependency provider for signup and login."""
    return get_service_container().auth_service


def get_user_service() -> UserService:
    """FastAPI dependency provider for profiles, search and follows."""
    return get_service_container().user_service


def get_post_service() -> PostService:
    """FastAPI dependency provider for the feed."""
    return get_service_container().post_service


def get_islander_service() -> IslanderService:
    """FastAPI dependency provider for the cast catalog."""
    return get_service_container().islander_service
