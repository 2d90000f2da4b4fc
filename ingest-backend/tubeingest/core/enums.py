from enum import Enum

class ScrapeFrequency(str, Enum):
    DAILY = "daily"
    MANUAL = "manual"

class VideoStatus(str, Enum):
    # Found by the channel scraper, waiting for an admin to categorize
    SCRAPED = "SCRAPED"
    # Submitted by a visitor, waiting for manual review
    PENDING = "PENDING"

class VideoCategory(str, Enum):
    UNCATEGORIZED = "UNCATEGORIZED"

class VideoSource(str, Enum):
    SCRAPE = "SCRAPE"
    SUBMISSION = "SUBMISSION"

class ThrottleBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"
