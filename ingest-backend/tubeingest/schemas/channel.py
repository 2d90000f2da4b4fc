from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field

from tubeingest.schemas.video import VideoOut

ScrapeFrequencyIn = Literal["daily", "manual"]

class ChannelCreate(BaseModel):
    input: str = Field(..., min_length=1, description="Channel URL, handle (@name), or channel ID")
    scrape_frequency: ScrapeFrequencyIn = "daily"

class ChannelUpdate(BaseModel):
    is_active: bool | None = None
    scrape_frequency: ScrapeFrequencyIn | None = None

class ChannelOut(BaseModel):
    id: str
    youtube_channel_id: str
    name: str
    description: str
    thumbnail_url: str
    subscriber_count: int
    is_active: bool
    scrape_frequency: str
    last_scraped_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class ChannelDetailOut(ChannelOut):
    video_count: int
    videos: list[VideoOut]


class ChannelInfoOut(BaseModel):
    id: str
    name: str
    description: str
    thumbnail_url: str
    subscriber_count: int

    class Config:
        from_attributes = True


class ChannelPreviewRequest(BaseModel):
    input: str = Field(..., min_length=1)


class ChannelResolveRequest(BaseModel):
    url: str = Field(..., description="YouTube URL or handle to resolve")


class ChannelResolveResponse(BaseModel):
    channel_id: str | None = None
    error: str | None = None


class ChannelStatsOut(BaseModel):
    total: int
    active: int
    scraped_videos: int
    uncategorized_videos: int
    needs_scraping: int
