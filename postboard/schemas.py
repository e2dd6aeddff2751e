from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, field_validator


# ----- Auth Schemas -----


class Credentials(BaseModel):
    """Signup / login payload.

    Both fields are optional here so that a missing value is reported by
    the credential checks as a 400 instead of a schema error.
    """

    email: Optional[str] = None
    password: Optional[str] = None


class TokenOut(BaseModel):
    token: str


# ----- Post Schemas -----


class PostIn(BaseModel):
    body: Optional[str] = None


class PostOut(BaseModel):
    id: int
    body: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive values; timestamps are always stored in UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    class Config:
        from_attributes = True


class DeletedPostOut(BaseModel):
    message: str
    post: PostOut


class MessageOut(BaseModel):
    message: str
