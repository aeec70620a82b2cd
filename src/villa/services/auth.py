"""Signup and credential verification."""

from datetime import UTC, datetime

from pymongo.errors import DuplicateKeyError

from ..core.exceptions import InvalidCredentialsError, UsernameTakenError
from ..core.logging import ContextLogger
from ..core.security import create_access_token, hash_password, verify_password
from ..schemas.users import SignupRequest, TokenResponse, UserProfile
from .store import USERS, MongoStore

logger = ContextLogger(__name__)

DEFAULT_ROLE = "user"


class AuthService:
    """Creates users and exchanges credentials for session tokens."""

    def __init__(self, store: MongoStore) -> None:
        self.store = store

    async def signup(self, request: SignupRequest) -> UserProfile:
        """Create a user keyed by username.

        Raises:
            UsernameTakenError: If the username is already registered.
            StorageError: If the insert fails for any other reason.
        """
        doc = {
            "_id": request.username,
            "username": request.username,
            "password_hash": hash_password(request.password),
            "first_name": request.first_name,
            "last_name": request.last_name,
            "email": request.email,
            "dob": request.dob,
            "role": DEFAULT_ROLE,
            "followers": [],
            "following": [],
            "created_at": datetime.now(UTC),
        }
        async with self.store.operation(USERS, "insert_one"):
            try:
                await self.store.users.insert_one(doc)
            except DuplicateKeyError as e:
                raise UsernameTakenError(
                    f"Username {request.username} is already taken",
                    details={"username": request.username},
                ) from e

        logger.info("User signed up", extra={"username": request.username})
        return UserProfile.from_document(doc)

    async def authenticate(self, username: str, password: str) -> TokenResponse:
        """Verify credentials and issue a session token.

        Raises:
            InvalidCredentialsError: If the user is unknown or the password
                does not match.
        """
        async with self.store.operation(USERS, "find_one"):
            user = await self.store.users.find_one({"_id": username})

        if user is None or not verify_password(password, user.get("password_hash", "")):
            logger.warning("Login failed", extra={"username": username})
            raise InvalidCredentialsError("Invalid username or password")

        token = create_access_token(user["_id"], user.get("role"))
        logger.info("Login succeeded", extra={"username": username})
        return TokenResponse(token=token)
