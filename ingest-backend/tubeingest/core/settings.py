from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    app_env: str = Field(default="dev", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_structured: bool = Field(default=False, alias="LOG_STRUCTURED")

    database_url: str = Field(default="sqlite:///./tubeingest.db", alias="DATABASE_URL")
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    rq_queue_name: str = Field(default="scrape", alias="RQ_QUEUE_NAME")

    # Checked when a request is about to be sent, not at startup
    youtube_api_key: str | None = Field(default=None, alias="YOUTUBE_API_KEY")
    youtube_api_base: str = Field(default="https://www.googleapis.com/youtube/v3", alias="YOUTUBE_API_BASE")
    youtube_request_timeout_seconds: float = Field(default=15.0, alias="YOUTUBE_REQUEST_TIMEOUT_SECONDS")

    scrape_page_size: int = Field(default=50, ge=1, le=50, alias="SCRAPE_PAGE_SIZE")
    scrape_max_pages: int = Field(default=200, ge=1, alias="SCRAPE_MAX_PAGES")
    scrape_interval_hours: int = Field(default=24, ge=1, alias="SCRAPE_INTERVAL_HOURS")
    poll_interval_seconds: int = Field(default=600, alias="POLL_INTERVAL_SECONDS")

    admin_api_token: str | None = Field(default=None, alias="ADMIN_API_TOKEN")
    cron_secret: str | None = Field(default=None, alias="CRON_SECRET")

    submission_max_per_window: int = Field(default=5, ge=1, alias="SUBMISSION_MAX_PER_WINDOW")
    submission_window_seconds: int = Field(default=3600, ge=1, alias="SUBMISSION_WINDOW_SECONDS")
    submission_throttle_backend: str = Field(default="memory", alias="SUBMISSION_THROTTLE_BACKEND")

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
