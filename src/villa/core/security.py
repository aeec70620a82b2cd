"""Password hashing and session token handling.

Passwords are stored as salted bcrypt hashes. Sessions are stateless HS256
JWTs asserting the username and role; nothing is kept server-side, so a
token stays valid until it expires.
"""

from datetime import UTC, datetime, timedelta
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from .exceptions import InvalidTokenError, MissingTokenError, ValidationError
from .settings import settings

# bcrypt only looks at the first 72 bytes of the secret
MAX_PASSWORD_BYTES = 72

bearer_scheme = HTTPBearer(auto_error=False)


class TokenData(BaseModel):
    """Identity asserted by a verified session token."""

    username: str
    role: str | None = None


def hash_password(password: str) -> str:
    """Hash a password with a fresh salt.

    Raises:
        ValidationError: If the password exceeds bcrypt's input limit.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
            details={"field": "password"},
        )
    salt = bcrypt.gensalt(rounds=settings.security.bcrypt_rounds)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES or not hashed:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(
    username: str,
    role: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed session token for a user.

    Args:
        username: Username the token asserts.
        role: Role claim copied from the user record.
        expires_delta: Token lifetime; defaults to the configured expiry.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(
            minutes=settings.security.access_token_expire_minutes
        )
    payload = {
        "sub": username,
        "username": username,
        "role": role,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(
        payload, settings.security.secret_key, algorithm=settings.security.algorithm
    )


def decode_access_token(token: str) -> TokenData:
    """Verify a session token and return the identity it asserts.

    Raises:
        InvalidTokenError: If the signature, expiry or payload is invalid.
    """
    try:
        payload = jwt.decode(
            token,
            settings.security.secret_key,
            algorithms=[settings.security.algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Token has expired", error_code="TOKEN_EXPIRED") from e
    except jwt.PyJWTError as e:
        raise InvalidTokenError("Invalid token") from e

    username = payload.get("username") or payload.get("sub")
    if not isinstance(username, str) or not username:
        raise InvalidTokenError("Invalid token")
    return TokenData(username=username, role=payload.get("role"))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenData:
    """FastAPI dependency requiring a valid bearer token."""
    if credentials is None or not credentials.credentials:
        raise MissingTokenError("Access denied")
    return decode_access_token(credentials.credentials)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenData | None:
    """FastAPI dependency for routes readable anonymously.

    A missing or invalid token yields ``None`` instead of an error.
    """
    if credentials is None or not credentials.credentials:
        return None
    try:
        return decode_access_token(credentials.credentials)
    except InvalidTokenError:
        return None
