"""
Scheduler - enqueue incremental scrapes for channels that are due.
A channel is due when it is active, on the daily cadence, and was never
scraped or last scraped more than SCRAPE_INTERVAL_HOURS ago.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from tubeingest.core.settings import settings
from tubeingest.db.session import SessionLocal, engine
from tubeingest.db.base import Base
from tubeingest.db.repositories import ChannelRepository
from tubeingest.services.channel_scraper import due_cutoff
from tubeingest.workers.jobs import scrape_channel_job
from tubeingest.workers.queue import enqueue_scrape_once
import tubeingest.models  # noqa: F401

logger = logging.getLogger(__name__)


def init_db():
    """Create tables if they don't exist"""
    logger.info("[scheduler] Initializing database tables...")
    Base.metadata.create_all(bind=engine)


def tick(now: Optional[datetime] = None, enqueue=enqueue_scrape_once) -> int:
    """
    Enqueue one scrape job per due channel. Returns the number enqueued.
    The watermark only moves when a job succeeds, so a channel whose job
    failed shows up again on the next tick; one still queued is skipped.
    """
    now = now or datetime.now(timezone.utc)
    db: Session = SessionLocal()
    try:
        enqueued = 0
        for ch in ChannelRepository(db).get_due(due_cutoff(now)):
            if enqueue(scrape_channel_job, ch.id) is None:
                logger.debug(f"[scheduler] [{ch.name}] Scrape already pending")
                continue
            enqueued += 1
            logger.info(f"[scheduler] [{ch.name}] Scrape enqueued")
        return enqueued
    finally:
        db.close()


if __name__ == "__main__":
    # Wait for DB to be ready
    for attempt in range(10):
        try:
            init_db()
            break
        except Exception as e:
            logger.warning(f"[scheduler] DB not ready (attempt {attempt + 1}/10): {e}")
            time.sleep(3)

    logger.info(f"[scheduler] Started. Polling every {settings.poll_interval_seconds}s")
    while True:
        try:
            tick()
        except Exception as e:
            logger.exception(f"[scheduler] Error in tick: {e}")
        time.sleep(settings.poll_interval_seconds)
