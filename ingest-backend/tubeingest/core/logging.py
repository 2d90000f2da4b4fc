"""
Logging Configuration - Structured logging with scrape context
"""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional
from contextvars import ContextVar

from tubeingest.core.settings import settings

# Context variables for scrape tracking
current_job_id: ContextVar[Optional[str]] = ContextVar('current_job_id', default=None)
current_channel_id: ContextVar[Optional[str]] = ContextVar('current_channel_id', default=None)
# "full" or "incremental" while a scrape job runs
current_scrape_mode: ContextVar[Optional[str]] = ContextVar('current_scrape_mode', default=None)


class StructuredFormatter(logging.Formatter):
    """
    JSON-structured log formatter with scrape context.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        job_id = current_job_id.get()
        channel_id = current_channel_id.get()
        scrape_mode = current_scrape_mode.get()

        if job_id:
            log_data["job_id"] = job_id
        if channel_id:
            log_data["channel_id"] = channel_id
        if scrape_mode:
            log_data["scrape_mode"] = scrape_mode

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


def setup_logging(level: str = "INFO", structured: bool = True):
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        structured: Use JSON format (True) or human-readable (False)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
        ))

    root_logger.addHandler(handler)


class JobContext:
    """
    Context manager for setting scrape context in logs.

    Usage:
        with JobContext(job_id="abc123", channel_id="UC...", scrape_mode="full"):
            logger.info("Scraping...")  # Will include job_id, channel_id and scrape_mode
    """
    def __init__(
        self,
        job_id: Optional[str] = None,
        channel_id: Optional[str] = None,
        scrape_mode: Optional[str] = None,
    ):
        self.job_id = job_id
        self.channel_id = channel_id
        self.scrape_mode = scrape_mode
        self._tokens = []

    def __enter__(self):
        if self.job_id:
            self._tokens.append((current_job_id, current_job_id.set(self.job_id)))
        if self.channel_id:
            self._tokens.append((current_channel_id, current_channel_id.set(self.channel_id)))
        if self.scrape_mode:
            self._tokens.append((current_scrape_mode, current_scrape_mode.set(self.scrape_mode)))
        return self

    def __exit__(self, *args):
        # Restore previous values, innermost first
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)


setup_logging(level=settings.log_level, structured=settings.log_structured)
