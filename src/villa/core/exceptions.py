"""Unified exception hierarchy for Villa."""

from typing import Any


class VillaError(Exception):
    """Base exception for all Villa errors."""

    status_code = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class ValidationError(VillaError):
    """Request validation failed."""

    pass


class InvalidReactionError(ValidationError):
    """Reaction is not one of up, down or none."""

    pass


class SelfFollowError(ValidationError):
    """A user tried to follow themselves."""

    pass


class SelfUnfollowError(ValidationError):
    """A user tried to unfollow themselves."""

    pass


class AuthenticationError(VillaError):
    """Authentication failed."""

    status_code = 401


class InvalidCredentialsError(AuthenticationError):
    """Unknown username or wrong password."""

    pass


class MissingTokenError(AuthenticationError):
    """No bearer token was supplied."""

    pass


class InvalidTokenError(AuthenticationError):
    """Bearer token failed signature, expiry or payload checks."""

    status_code = 403


class NotFoundError(VillaError):
    """Base exception for resource not found errors."""

    status_code = 404


class UserNotFoundError(NotFoundError):
    """User not found."""

    pass


class PostNotFoundError(NotFoundError):
    """Post not found."""

    pass


class IslanderNotFoundError(NotFoundError):
    """Islander not found."""

    pass


class ConflictError(VillaError):
    """Resource already exists."""

    status_code = 409


class UsernameTakenError(ConflictError):
    """Username already registered."""

    pass


class ServiceError(VillaError):
    """Base exception for service-level errors."""

    status_code = 500


class StorageError(ServiceError):
    """Document store operation failed."""

    pass
