"""
Channel Scraper - pulls uploads from tracked channels into the videos table.

Full scrapes walk the whole uploads playlist; incremental scrapes stop once
they reach videos older than the channel's last successful scrape. Videos
already stored are left untouched, and the watermark only moves after the
whole scrape has succeeded.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tubeingest.core.enums import ScrapeFrequency, VideoCategory, VideoSource, VideoStatus
from tubeingest.core.errors import ConflictError, IngestError, NotFoundError, ValidationError
from tubeingest.core.settings import settings
from tubeingest.db.repositories import ChannelRepository, VideoRepository
from tubeingest.models import Channel, Video
from tubeingest.services.youtube import (
    ChannelInfo,
    YouTubeClient,
    default_thumbnail_url,
    ensure_utc,
    watch_url,
)

logger = logging.getLogger(__name__)


@dataclass
class ScrapeResult:
    channel_id: str
    channel_name: str
    videos_found: int = 0
    videos_created: int = 0
    videos_skipped: int = 0
    watermark: Optional[datetime] = None


@dataclass
class ScrapeBatchResult:
    channels_processed: int = 0
    total_videos_created: int = 0
    results: List[ScrapeResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _get_channel(db: Session, channel_id: str) -> Channel:
    channel = ChannelRepository(db).get_by_id(channel_id)
    if not channel:
        raise NotFoundError(f"Channel not found: {channel_id}")
    return channel


def scrape_channel(
    db: Session,
    channel_id: str,
    full: bool = False,
    client: Optional[YouTubeClient] = None,
    now: Optional[datetime] = None,
) -> ScrapeResult:
    """
    Scrape one channel (by internal id) and store the videos not yet known.

    The new watermark is the time the scrape started, so uploads published
    while it runs are picked up by the next incremental scrape. Any error
    from the API propagates before anything is committed.
    """
    client = client or YouTubeClient()
    started_at = ensure_utc(now) or _utcnow()

    channel = _get_channel(db, channel_id)
    since = None if full else ensure_utc(channel.last_scraped_at)
    mode = "full" if full else "incremental"
    logger.info(f"[scraper] {channel.name}: {mode} scrape (since={since.isoformat() if since else 'beginning'})")

    uploads = client.list_channel_uploads(
        channel.youtube_channel_id,
        since=since,
        page_size=settings.scrape_page_size,
        max_pages=settings.scrape_max_pages,
    )

    result = ScrapeResult(channel_id=channel.id, channel_name=channel.name, videos_found=len(uploads))
    videos = VideoRepository(db)

    try:
        for upload in uploads:
            inserted = videos.insert_if_absent(
                upload.youtube_video_id,
                channel_id=channel.id,
                url=watch_url(upload.youtube_video_id),
                title=upload.title,
                description=upload.description,
                channel_name=upload.channel_name,
                thumbnail_url=upload.thumbnail_url or default_thumbnail_url(upload.youtube_video_id),
                published_at=upload.published_at,
                duration_sec=upload.duration_sec,
                status=VideoStatus.SCRAPED.value,
                category=VideoCategory.UNCATEGORIZED.value,
                source=VideoSource.SCRAPE.value,
                scraped_at=started_at,
            )
            if inserted:
                result.videos_created += 1
            else:
                result.videos_skipped += 1

        ChannelRepository(db).update_watermark(channel, started_at)
        db.commit()
    except Exception:
        db.rollback()
        raise

    result.watermark = started_at
    logger.info(
        f"[scraper] {channel.name}: found={result.videos_found} "
        f"created={result.videos_created} skipped={result.videos_skipped}"
    )
    return result


def scrape_all(db: Session, channel_id: str, client: Optional[YouTubeClient] = None, now: Optional[datetime] = None) -> ScrapeResult:
    """Full scrape: the channel's entire upload history, up to the page limit."""
    return scrape_channel(db, channel_id, full=True, client=client, now=now)


def scrape_new(db: Session, channel_id: str, client: Optional[YouTubeClient] = None, now: Optional[datetime] = None) -> ScrapeResult:
    """Incremental scrape: only uploads since the last successful scrape."""
    return scrape_channel(db, channel_id, full=False, client=client, now=now)


def due_cutoff(now: datetime) -> datetime:
    return now - timedelta(hours=settings.scrape_interval_hours)


def scrape_due_channels(
    db: Session,
    client: Optional[YouTubeClient] = None,
    now: Optional[datetime] = None,
) -> ScrapeBatchResult:
    """
    Incrementally scrape every active daily channel that is due.
    Channels are done one after another; one failing does not stop the rest.
    """
    client = client or YouTubeClient()
    now = ensure_utc(now) or _utcnow()
    batch = ScrapeBatchResult()

    channels = ChannelRepository(db).get_due(due_cutoff(now))
    logger.info(f"[scraper] {len(channels)} channels due")

    for ch in channels:
        try:
            result = scrape_new(db, ch.id, client=client, now=now)
        except IngestError as e:
            logger.error(f"[scraper] {ch.name}: scrape failed: {e}")
            batch.errors.append(f"{ch.name}: {e}")
            continue
        batch.results.append(result)
        batch.channels_processed += 1
        batch.total_videos_created += result.videos_created

    return batch


# =============================================================================
# Channel management
# =============================================================================

def _resolve_or_raise(client: YouTubeClient, raw_input: str) -> str:
    youtube_channel_id = client.resolve_channel_id(raw_input)
    if not youtube_channel_id:
        raise NotFoundError(
            "Could not find YouTube channel. Please provide a valid channel URL, handle (@name), or channel ID."
        )
    return youtube_channel_id


def preview_channel(raw_input: str, client: Optional[YouTubeClient] = None) -> ChannelInfo:
    """Resolve and fetch channel info without storing anything."""
    client = client or YouTubeClient()
    youtube_channel_id = _resolve_or_raise(client, raw_input)
    try:
        return client.get_channel_info(youtube_channel_id)
    except IngestError as e:
        raise NotFoundError(f"Could not fetch channel info. {e}") from e


def add_channel(
    db: Session,
    raw_input: str,
    scrape_frequency: str = ScrapeFrequency.DAILY.value,
    client: Optional[YouTubeClient] = None,
) -> Channel:
    """
    Start tracking a channel. It is stored unscraped (watermark NULL).

    Raises ConflictError if the channel is already tracked and NotFoundError
    if it cannot be resolved or its info cannot be fetched.
    """
    if scrape_frequency not in {f.value for f in ScrapeFrequency}:
        raise ValidationError(f"Invalid scrape frequency: {scrape_frequency}")

    client = client or YouTubeClient()
    youtube_channel_id = _resolve_or_raise(client, raw_input)

    channels = ChannelRepository(db)
    existing = channels.get_by_youtube_id(youtube_channel_id)
    if existing:
        raise ConflictError(f'Channel "{existing.name}" is already in the system.')

    try:
        info = client.get_channel_info(youtube_channel_id)
    except IngestError as e:
        raise NotFoundError(f"Could not fetch channel info from YouTube. {e}") from e

    ch = channels.create(
        youtube_channel_id=info.id,
        name=info.name,
        description=info.description,
        thumbnail_url=info.thumbnail_url,
        subscriber_count=info.subscriber_count,
        is_active=True,
        scrape_frequency=scrape_frequency,
        last_scraped_at=None,
    )
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with another add of the same channel
        db.rollback()
        raise ConflictError(f"Channel {youtube_channel_id} is already in the system.") from e
    db.refresh(ch)

    logger.info(f"[scraper] Added channel {ch.name} ({ch.youtube_channel_id}), frequency={ch.scrape_frequency}")
    return ch


def update_channel(
    db: Session,
    channel_id: str,
    is_active: Optional[bool] = None,
    scrape_frequency: Optional[str] = None,
) -> Channel:
    ch = _get_channel(db, channel_id)
    if scrape_frequency is not None:
        if scrape_frequency not in {f.value for f in ScrapeFrequency}:
            raise ValidationError(f"Invalid scrape frequency: {scrape_frequency}")
        ch.scrape_frequency = scrape_frequency
    if is_active is not None:
        ch.is_active = is_active
    db.commit()
    db.refresh(ch)
    return ch


@dataclass
class ChannelDetail:
    channel: Channel
    video_count: int
    videos: List[Video]


def get_channel_detail(db: Session, channel_id: str, video_limit: int = 20) -> ChannelDetail:
    """Channel with its stored video count and newest videos."""
    ch = _get_channel(db, channel_id)
    videos = VideoRepository(db)
    return ChannelDetail(
        channel=ch,
        video_count=videos.count_by_channel(ch.id),
        videos=videos.get_by_channel(ch.id, limit=video_limit),
    )


def delete_channel(db: Session, channel_id: str) -> Channel:
    """
    Stop tracking a channel. Its videos stay, unlinked from it.
    """
    ch = _get_channel(db, channel_id)
    try:
        unlinked = VideoRepository(db).unlink_channel(ch.id)
        db.delete(ch)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"[scraper] Deleted channel {ch.name} ({ch.youtube_channel_id}), unlinked {unlinked} videos")
    return ch


def channel_stats(db: Session, now: Optional[datetime] = None) -> dict:
    now = ensure_utc(now) or _utcnow()
    channels = ChannelRepository(db)
    videos = VideoRepository(db)
    return {
        "total": channels.count(),
        "active": channels.count(Channel.is_active == True),
        "scraped_videos": videos.count(Video.scraped_at.is_not(None)),
        "uncategorized_videos": videos.count(
            Video.status == VideoStatus.SCRAPED.value,
            Video.category == VideoCategory.UNCATEGORIZED.value,
        ),
        "needs_scraping": len(channels.get_due(due_cutoff(now))),
    }
