"""
VideoTube Backend — User Request/Response Schemas
==================================================

What:  The explicit field → type + constraints table for User, validated at
       the HTTP boundary before any service code runs.

Partial updates:
    UserUpdate fields are all optional. Only fields present in the request
    body are validated and applied (`model_dump(exclude_unset=True)`).
    Sending `null` for a required column is rejected; `cover_image_url`
    may be cleared with `null`.

Never exposed: password_hash, refresh_token.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=120)
    avatar_url: str = Field(min_length=1, max_length=500)
    cover_image_url: Optional[str] = Field(default=None, max_length=500)
    password: str = Field(min_length=8, max_length=128)

    model_config = {"extra": "forbid"}

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        # EmailStr keeps the local part as typed
        return v.lower()

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        return v.lower()


class UserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    avatar_url: Optional[str] = Field(default=None, min_length=1, max_length=500)
    cover_image_url: Optional[str] = Field(default=None, max_length=500)
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)

    model_config = {"extra": "forbid"}

    @field_validator("username", "email", "full_name", "avatar_url", "password")
    @classmethod
    def reject_null(cls, v: Optional[str]) -> Optional[str]:
        # Defaults are not validated, so this only fires on an explicit null
        if v is None:
            raise ValueError("may not be null")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v is not None else v

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v is not None else v


class UserLogin(BaseModel):
    """Either a username or an email, plus the password."""
    login: str = Field(min_length=1, max_length=255, description="Username or email")
    password: str = Field(min_length=1, max_length=128)


class UserResponse(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    full_name: str
    avatar_url: str
    cover_image_url: Optional[str] = None
    watch_history: List[uuid.UUID] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class WatchHistoryAdd(BaseModel):
    video_id: uuid.UUID


class WatchHistoryResponse(BaseModel):
    user_id: uuid.UUID
    video_ids: List[uuid.UUID]
