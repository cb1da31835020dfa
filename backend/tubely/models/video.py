"""
Video data models
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StorageReference(BaseModel):
    """Location of a stored media object: bucket plus object key"""
    bucket: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1)

    @property
    def orientation(self) -> Optional[str]:
        """Orientation class the key was placed under, e.g. ``portrait``"""
        prefix, sep, _ = self.key.partition("/")
        return prefix if sep else None


class VideoRecord(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: uuid.UUID
    title: str
    description: str = ""
    video: Optional[StorageReference] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class VideoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)


class VideoResponse(BaseModel):
    """Video record as returned to clients, media rendered as a signed URL"""
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str
    video_url: Optional[str] = None
    orientation: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class VideoListResponse(BaseModel):
    videos: List[VideoResponse]
    count: int
