"""
VideoTube Backend — Video Request/Response Schemas
===================================================

Constraint table:
    video_file_url   str    required
    thumbnail_url    str    required
    title            str    required, 1-200 chars
    description      str    required
    duration         float  required, >= 0 (seconds)
    views            int    server-managed, >= 0, never decreases
    is_published     bool   default True
    owner_id         UUID   required, must reference an existing user
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class VideoCreate(BaseModel):
    video_file_url: str = Field(min_length=1, max_length=500)
    thumbnail_url: str = Field(min_length=1, max_length=500)
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    duration: float = Field(ge=0)
    is_published: bool = True
    owner_id: uuid.UUID

    model_config = {"extra": "forbid"}


class VideoUpdate(BaseModel):
    video_file_url: Optional[str] = Field(default=None, min_length=1, max_length=500)
    thumbnail_url: Optional[str] = Field(default=None, min_length=1, max_length=500)
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[float] = Field(default=None, ge=0)
    views: Optional[int] = Field(default=None, ge=0)
    is_published: Optional[bool] = None

    model_config = {"extra": "forbid"}

    @field_validator(
        "video_file_url", "thumbnail_url", "title", "description",
        "duration", "views", "is_published",
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class VideoResponse(BaseModel):
    id: uuid.UUID
    video_file_url: str
    thumbnail_url: str
    title: str
    description: str
    duration: float
    views: int
    is_published: bool
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class VideoListResponse(BaseModel):
    videos: List[VideoResponse]
    total_count: int
    limit: int
    offset: int


class ViewCountResponse(BaseModel):
    id: uuid.UUID
    views: int
