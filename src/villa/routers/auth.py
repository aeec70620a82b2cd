"""Signup and login endpoints.

Example Usage:
    Create an account:
        POST /api/signup
        {"username": "alice", "password": "secret1", "firstName": "Alice",
         "lastName": "Smith", "email": "alice@example.com"}

    Exchange credentials for a token:
        POST /api/login
        {"username": "alice", "password": "secret1"}
"""

from fastapi import APIRouter, Depends, status

from ..core.dependencies import get_auth_service
from ..core.logging import ContextLogger
from ..schemas.users import LoginRequest, SignupRequest, TokenResponse, UserProfile
from ..services.auth import AuthService

router = APIRouter(
    tags=["auth"],
    responses={
        400: {"description": "Malformed request"},
        500: {"description": "Internal server error"},
    },
)

logger = ContextLogger(__name__)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid username or password"}},
    summary="Log in",
    description="Exchanges a username and password for a one-hour bearer token",
)
async def login(
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    async with logger.track_time("login"):
        return await service.authenticate(body.username, body.password)


@router.post(
    "/signup",
    response_model=UserProfile,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Username already taken"}},
    summary="Create an account",
)
async def signup(
    body: SignupRequest,
    service: AuthService = Depends(get_auth_service),
) -> UserProfile:
    """Register a new user.

    Args:
        body: Signup fields; username, password, names and email are required.
        service: AuthService instance for handling the request.

    Returns:
        UserProfile: The created user, without credential material.
    """
    logger.info("Processing signup request", extra={"username": body.username})
    return await service.signup(body)
