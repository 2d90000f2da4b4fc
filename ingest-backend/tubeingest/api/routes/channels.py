from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tubeingest.api.deps import get_youtube_client, require_admin
from tubeingest.db.repositories import ChannelRepository
from tubeingest.db.session import get_db
from tubeingest.schemas.channel import (
    ChannelCreate,
    ChannelDetailOut,
    ChannelInfoOut,
    ChannelOut,
    ChannelPreviewRequest,
    ChannelResolveRequest,
    ChannelResolveResponse,
    ChannelStatsOut,
    ChannelUpdate,
)
from tubeingest.schemas.scrape import ScrapeResultOut
from tubeingest.schemas.video import VideoOut
from tubeingest.services import channel_scraper
from tubeingest.services.youtube import YouTubeClient

router = APIRouter(prefix="/api/channels", tags=["channels"])


@router.post("/resolve", response_model=ChannelResolveResponse, dependencies=[Depends(require_admin)])
def resolve_channel(body: ChannelResolveRequest, client: YouTubeClient = Depends(get_youtube_client)):
    """
    Resolve a YouTube URL, handle or custom URL to a canonical Channel ID.
    "Not found" comes back in the body; an API outage is a 502.
    """
    channel_id = client.resolve_channel_id(body.url)
    if not channel_id:
        return ChannelResolveResponse(error="Could not find YouTube channel")
    return ChannelResolveResponse(channel_id=channel_id)


@router.post("/preview", response_model=ChannelInfoOut, dependencies=[Depends(require_admin)])
def preview_channel(body: ChannelPreviewRequest, client: YouTubeClient = Depends(get_youtube_client)):
    """Look a channel up before adding it, to check the right one was found."""
    return channel_scraper.preview_channel(body.input, client=client)


@router.get("", response_model=list[ChannelOut])
def list_channels(active_only: bool = False, db: Session = Depends(get_db)):
    return ChannelRepository(db).list_ordered(active_only=active_only)


@router.get("/stats", response_model=ChannelStatsOut, dependencies=[Depends(require_admin)])
def get_stats(db: Session = Depends(get_db)):
    return channel_scraper.channel_stats(db)


@router.post("", response_model=ChannelOut, dependencies=[Depends(require_admin)])
def create_channel(
    body: ChannelCreate,
    db: Session = Depends(get_db),
    client: YouTubeClient = Depends(get_youtube_client),
):
    return channel_scraper.add_channel(db, body.input, scrape_frequency=body.scrape_frequency, client=client)


@router.get("/{channel_id}", response_model=ChannelDetailOut)
def get_channel(channel_id: str, db: Session = Depends(get_db)):
    """Channel with its video count and 20 newest videos."""
    detail = channel_scraper.get_channel_detail(db, channel_id, video_limit=20)
    return ChannelDetailOut(
        **ChannelOut.model_validate(detail.channel).model_dump(),
        video_count=detail.video_count,
        videos=[VideoOut.model_validate(v) for v in detail.videos],
    )


@router.delete("/{channel_id}", response_model=ChannelOut, dependencies=[Depends(require_admin)])
def delete_channel(channel_id: str, db: Session = Depends(get_db)):
    """Remove a channel. Its videos are kept and unlinked."""
    return channel_scraper.delete_channel(db, channel_id)


@router.patch("/{channel_id}", response_model=ChannelOut, dependencies=[Depends(require_admin)])
def update_channel(channel_id: str, body: ChannelUpdate, db: Session = Depends(get_db)):
    return channel_scraper.update_channel(
        db, channel_id, is_active=body.is_active, scrape_frequency=body.scrape_frequency
    )


@router.post("/{channel_id}/scrape-all", response_model=ScrapeResultOut, dependencies=[Depends(require_admin)])
def scrape_all(
    channel_id: str,
    db: Session = Depends(get_db),
    client: YouTubeClient = Depends(get_youtube_client),
):
    """
    Fetch the channel's entire upload history.
    Used for the initial bulk import; already stored videos are skipped.
    """
    return channel_scraper.scrape_all(db, channel_id, client=client)


@router.post("/{channel_id}/scrape-new", response_model=ScrapeResultOut, dependencies=[Depends(require_admin)])
def scrape_new(
    channel_id: str,
    db: Session = Depends(get_db),
    client: YouTubeClient = Depends(get_youtube_client),
):
    """Fetch only uploads published since the channel was last scraped."""
    return channel_scraper.scrape_new(db, channel_id, client=client)
