"""User-related schema definitions.

This module defines Pydantic models for signup, login, profile and follow
payloads. Stored user documents keep snake_case keys; the API speaks
camelCase.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from .base import CamelModel

USERNAME_PATTERN = r"^[A-Za-z0-9_-]{3,32}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SignupRequest(CamelModel):
    """Schema for user signup."""

    username: str = Field(
        ..., pattern=USERNAME_PATTERN, description="Unique username"
    )
    password: str = Field(..., min_length=6, max_length=72, description="Password")
    first_name: str = Field(..., min_length=1, description="First name")
    last_name: str = Field(..., min_length=1, description="Last name")
    email: str = Field(..., pattern=EMAIL_PATTERN, description="Email address")
    dob: str | None = Field(None, description="Date of birth")


class LoginRequest(CamelModel):
    """Schema for credential exchange."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(CamelModel):
    """Schema for an issued session token."""

    token: str = Field(..., description="Signed bearer token")
    token_type: str = Field("bearer", description="Token scheme")


class ProfileUpdate(CamelModel):
    """Schema for updating the caller's own profile."""

    first_name: str | None = Field(None, min_length=1)
    last_name: str | None = Field(None, min_length=1)
    email: str | None = Field(None, pattern=EMAIL_PATTERN)
    dob: str | None = None
    password: str | None = Field(None, min_length=6, max_length=72)


class UserProfile(CamelModel):
    """Schema for user information; never carries credential material."""

    username: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    dob: str | None = None
    role: str | None = None
    login_id: str | None = None
    section: str | None = None
    last_activity: str | None = None
    total_activity: str | None = None
    followers: list[str] = Field(default_factory=list)
    following: list[str] = Field(default_factory=list)
    created_at: datetime | None = None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "UserProfile":
        data = {k: v for k, v in doc.items() if k in cls.model_fields}
        data["username"] = doc.get("username") or doc["_id"]
        return cls(**data)


class FollowResponse(CamelModel):
    """Schema for follow/unfollow results."""

    message: str
    username: str = Field(..., description="Target user")
    following: bool = Field(..., description="Whether the caller now follows them")
