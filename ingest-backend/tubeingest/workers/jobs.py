"""
Scrape jobs run by the rq worker.
"""
from __future__ import annotations

import logging
from typing import Optional

from rq import get_current_job

from tubeingest.core.errors import NotFoundError
from tubeingest.core.logging import JobContext
from tubeingest.db.context import get_db_session
from tubeingest.services.channel_scraper import scrape_channel

logger = logging.getLogger(__name__)


def scrape_channel_job(channel_id: str, full: bool = False) -> Optional[dict]:
    """
    Scrape one channel. ServiceError is left to propagate so rq retries the
    job; a channel deleted since it was enqueued is not worth retrying.
    """
    job = get_current_job()
    mode = "full" if full else "incremental"
    with JobContext(job_id=job.id if job else None, channel_id=channel_id, scrape_mode=mode):
        with get_db_session() as db:
            try:
                result = scrape_channel(db, channel_id, full=full)
            except NotFoundError as e:
                logger.warning(f"[jobs] Dropping scrape job: {e}")
                return None
    return {
        "channel_id": result.channel_id,
        "videos_found": result.videos_found,
        "videos_created": result.videos_created,
        "videos_skipped": result.videos_skipped,
    }
