"""Islander (cast member) schema definitions."""

from typing import Any

from pydantic import BaseModel, Field


class IslanderResponse(BaseModel):
    """Schema for a cast member record."""

    id: str = Field(..., description="Islander identifier")
    first_name: str | None = None
    last_name: str | None = None
    age: int | None = None
    astrology_sign: str | None = None
    hometown: str | None = None
    episode_entered: int | None = None
    episode_left: int | None = None
    image: str | None = Field(None, description="Image reference")

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "IslanderResponse":
        data = {k: v for k, v in doc.items() if k in cls.model_fields}
        data["id"] = str(doc["_id"])
        return cls(**data)


class IslanderSeed(BaseModel):
    """Schema for one record of a seed file."""

    first_name: str
    last_name: str | None = None
    age: int | None = None
    astrology_sign: str | None = None
    hometown: str | None = None
    episode_entered: int | None = None
    episode_left: int | None = None
    image: str | None = None
