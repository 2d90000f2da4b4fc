from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tubeingest.api.deps import get_youtube_client, require_cron
from tubeingest.db.session import get_db
from tubeingest.schemas.scrape import ScrapeBatchOut, ScrapeResultOut
from tubeingest.services.channel_scraper import scrape_due_channels
from tubeingest.services.youtube import YouTubeClient

router = APIRouter(prefix="/api/cron", tags=["cron"])


@router.get("/scrape-channels", response_model=ScrapeBatchOut, dependencies=[Depends(require_cron)])
def scrape_channels(db: Session = Depends(get_db), client: YouTubeClient = Depends(get_youtube_client)):
    """
    Incrementally scrape every daily channel that is due.
    Called by an external cron with `Authorization: Bearer $CRON_SECRET`.
    """
    now = datetime.now(timezone.utc)
    batch = scrape_due_channels(db, client=client, now=now)
    return ScrapeBatchOut(
        channels_processed=batch.channels_processed,
        total_videos_created=batch.total_videos_created,
        results=[ScrapeResultOut.model_validate(r) for r in batch.results],
        errors=batch.errors,
        timestamp=now,
    )
