from datetime import datetime
from pydantic import BaseModel, Field

class VideoOut(BaseModel):
    id: str
    channel_id: str | None = None
    youtube_video_id: str
    url: str
    title: str
    channel_name: str
    thumbnail_url: str
    published_at: datetime | None = None
    duration_sec: int
    status: str
    category: str
    source: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class SubmissionCreate(BaseModel):
    """Visitor submits a video link for manual review"""
    video_url: str = Field(..., min_length=1)
    title: str | None = None
