from datetime import datetime
from pydantic import BaseModel

class ScrapeResultOut(BaseModel):
    channel_id: str
    channel_name: str
    videos_found: int
    videos_created: int
    videos_skipped: int
    watermark: datetime | None = None

    class Config:
        from_attributes = True


class ScrapeBatchOut(BaseModel):
    channels_processed: int
    total_videos_created: int
    results: list[ScrapeResultOut]
    errors: list[str]
    timestamp: datetime

    class Config:
        from_attributes = True
