from datetime import datetime
from typing import TypeVar, Generic, Type, Optional
from uuid import uuid4
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from tubeingest.db.base import Base

T = TypeVar("T", bound=Base)

class BaseRepository(Generic[T]):
    """Generic repository for CRUD operations."""

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model

    def get_by_id(self, id: str) -> Optional[T]:
        return self.db.query(self.model).filter(self.model.id == id).first()

    def count(self, *criteria) -> int:
        return self.db.query(self.model).filter(*criteria).count()

    def create(self, **kwargs) -> T:
        if "id" not in kwargs:
            kwargs["id"] = str(uuid4())
        instance = self.model(**kwargs)
        self.db.add(instance)
        return instance


class VideoRepository(BaseRepository):
    """Repository for Video operations."""

    def __init__(self, db: Session):
        from tubeingest.models import Video
        super().__init__(db, Video)

    def get_by_youtube_id(self, youtube_video_id: str):
        return self.db.query(self.model).filter(
            self.model.youtube_video_id == youtube_video_id
        ).first()

    def get_by_channel(self, channel_id: str, limit: int | None = None):
        q = self.db.query(self.model).filter(
            self.model.channel_id == channel_id
        ).order_by(self.model.published_at.desc())
        if limit is not None:
            q = q.limit(limit)
        return q.all()

    def count_by_channel(self, channel_id: str) -> int:
        return self.count(self.model.channel_id == channel_id)

    def unlink_channel(self, channel_id: str) -> int:
        """Detach a channel's videos so the channel row can go. Returns rows touched."""
        return self.db.query(self.model).filter(
            self.model.channel_id == channel_id
        ).update({self.model.channel_id: None}, synchronize_session="fetch")

    def insert_if_absent(self, youtube_video_id: str, **fields) -> bool:
        """
        Insert a video unless one with the same platform id is already stored.

        Existing rows are never modified. The unique constraint on
        youtube_video_id settles races between concurrent scrapes: the loser's
        savepoint is rolled back and it reports the row as already present.

        Returns True if a row was inserted.
        """
        if self.get_by_youtube_id(youtube_video_id) is not None:
            return False
        try:
            with self.db.begin_nested():
                self.create(youtube_video_id=youtube_video_id, **fields)
        except IntegrityError:
            return False
        return True


class ChannelRepository(BaseRepository):
    """Repository for Channel operations."""

    def __init__(self, db: Session):
        from tubeingest.models import Channel
        super().__init__(db, Channel)

    def list_ordered(self, active_only: bool = False):
        q = self.db.query(self.model)
        if active_only:
            q = q.filter(self.model.is_active == True)
        return q.order_by(self.model.name.asc()).all()

    def get_by_youtube_id(self, youtube_channel_id: str):
        return self.db.query(self.model).filter(
            self.model.youtube_channel_id == youtube_channel_id
        ).first()

    def get_due(self, cutoff: datetime):
        """Active daily channels never scraped or last scraped before cutoff."""
        return self.db.query(self.model).filter(
            self.model.is_active == True,
            self.model.scrape_frequency == "daily",
            or_(
                self.model.last_scraped_at.is_(None),
                self.model.last_scraped_at < cutoff,
            ),
        ).order_by(self.model.created_at.asc()).all()

    def update_watermark(self, channel, scraped_at: datetime) -> None:
        channel.last_scraped_at = scraped_at
