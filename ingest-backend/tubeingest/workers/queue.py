"""
Queue Configuration - rq queue for scrape jobs with retry support
"""
from redis import Redis
from rq import Queue, Retry
from tubeingest.core.settings import settings

# Redis connection (lazy: nothing is sent until a job is enqueued)
redis_conn = Redis.from_url(settings.redis_url)

scrape_queue = Queue(settings.rq_queue_name, connection=redis_conn)


def get_retry_config(max_retries: int = 3) -> Retry:
    """
    Default retry configuration with exponential backoff.
    Intervals: 30s, 60s, 120s
    """
    return Retry(max=max_retries, interval=[30, 60, 120])


# Upstream API hiccups and quota blips usually clear within minutes
RETRY_SCRAPE = get_retry_config(3)


def enqueue_scrape(func, *args, job_timeout=900, **kwargs):
    """Enqueue job to scrape queue with retry"""
    return scrape_queue.enqueue(
        func, *args,
        job_timeout=job_timeout,
        retry=RETRY_SCRAPE,
        **kwargs
    )


PENDING_STATUSES = {"queued", "started", "deferred", "scheduled"}


def enqueue_scrape_once(func, channel_id: str, **kwargs):
    """
    Enqueue a scrape for channel_id unless one is already waiting or running.
    Returns the job, or None if skipped.
    """
    job_id = f"scrape-{channel_id}"
    existing = scrape_queue.fetch_job(job_id)
    if existing is not None and existing.get_status(refresh=True) in PENDING_STATUSES:
        return None
    return enqueue_scrape(func, channel_id, job_id=job_id, **kwargs)
