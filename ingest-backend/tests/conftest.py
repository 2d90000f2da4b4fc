"""Shared fixtures: in-memory database, fake YouTube Data API, API client."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_API_TOKEN"] = "test-admin-token"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["YOUTUBE_API_KEY"] = "test-api-key"

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tubeingest.db.base import Base
from tubeingest.db.session import enable_sqlite_savepoints
from tubeingest.services.youtube import YouTubeClient
import tubeingest.models  # noqa: F401

CHANNEL_ID = "UCabcdefghijklmnopqrstuv"
OTHER_CHANNEL_ID = "UCzyxwvutsrqponmlkjihgfe"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class FakeResponse:
    def __init__(self, payload=None, status_code=200, reason="OK"):
        self._payload = payload
        self.status_code = status_code
        self.reason = reason
        self.text = str(payload)

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeYouTubeAPI:
    """
    Stands in for requests.Session: routes GETs to canned Data API payloads.
    Uploads are kept newest first, like the real uploads playlist.
    """

    def __init__(self):
        self.handles = {}
        self.searches = {}
        self.channels = {}
        self.uploads = {}
        self.durations = {}
        self.failures = {}
        self.calls = []

    def get(self, url, params=None, timeout=None):
        endpoint = url.rsplit("/", 1)[-1]
        params = dict(params or {})
        self.calls.append((endpoint, params))
        if endpoint in self.failures:
            status = self.failures[endpoint]
            if isinstance(status, Exception):
                raise status
            return FakeResponse({"error": {"code": status}}, status_code=status, reason="Error")
        return getattr(self, f"_{endpoint}")(params)

    def calls_to(self, endpoint):
        return [params for name, params in self.calls if name == endpoint]

    # -- setup helpers --------------------------------------------------

    def add_channel(self, channel_id=CHANNEL_ID, title="Test Channel", handle=None,
                    description="", subscribers="1200", thumbnails=None):
        self.channels[channel_id] = {
            "id": channel_id,
            "snippet": {
                "title": title,
                "description": description,
                "thumbnails": thumbnails if thumbnails is not None else {
                    "default": {"url": f"https://yt3.test/{channel_id}/default.jpg"},
                    "high": {"url": f"https://yt3.test/{channel_id}/high.jpg"},
                },
            },
            "statistics": {"subscriberCount": subscribers, "videoCount": "3"},
        }
        if handle:
            self.handles[handle] = channel_id

    def add_upload(self, video_id, published_at, channel_id=CHANNEL_ID, title=None,
                   duration="PT1M", channel_title="Test Channel", description="", thumbnails=None):
        playlist = "UU" + channel_id[2:]
        self.uploads.setdefault(playlist, []).append({
            "id": f"item-{video_id}",
            "snippet": {
                "title": title or f"Video {video_id}",
                "description": description,
                "publishedAt": iso(published_at),
                "channelId": channel_id,
                "channelTitle": channel_title,
                "resourceId": {"kind": "youtube#video", "videoId": video_id},
                "thumbnails": thumbnails if thumbnails is not None else {
                    "high": {"url": f"https://i.ytimg.test/vi/{video_id}/hq.jpg"},
                },
            },
        })
        self.uploads[playlist].sort(key=lambda item: item["snippet"]["publishedAt"], reverse=True)
        if duration is not None:
            self.durations[video_id] = duration

    # -- endpoints ------------------------------------------------------

    def _channels(self, params):
        if "forHandle" in params:
            channel_id = self.handles.get(params["forHandle"])
            return FakeResponse({"items": [{"id": channel_id}] if channel_id else []})
        channel = self.channels.get(params.get("id"))
        return FakeResponse({"items": [channel] if channel else []})

    def _search(self, params):
        channel_id = self.searches.get(params["q"])
        items = [{"id": {"kind": "youtube#channel", "channelId": channel_id}}] if channel_id else []
        return FakeResponse({"items": items})

    def _playlistItems(self, params):
        items = self.uploads.get(params["playlistId"], [])
        size = int(params["maxResults"])
        start = int(params.get("pageToken") or 0)
        payload = {"items": items[start:start + size], "pageInfo": {"totalResults": len(items)}}
        if start + size < len(items):
            payload["nextPageToken"] = str(start + size)
        return FakeResponse(payload)

    def _videos(self, params):
        ids = params["id"].split(",")
        return FakeResponse({"items": [
            {"id": video_id, "contentDetails": {"duration": self.durations[video_id]}}
            for video_id in ids if video_id in self.durations
        ]})


@pytest.fixture
def youtube_api():
    return FakeYouTubeAPI()


@pytest.fixture
def youtube_client(youtube_api):
    return YouTubeClient(
        api_key="test-api-key",
        session=youtube_api,
        base_url="https://api.test/youtube/v3",
        timeout=5,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def throttle():
    from tubeingest.services.throttle import InMemorySubmissionThrottle
    return InMemorySubmissionThrottle(max_requests=5, window_seconds=3600)


@pytest.fixture
def api(session_factory, youtube_client, throttle):
    from fastapi.testclient import TestClient

    from tubeingest.api.deps import get_youtube_client
    from tubeingest.db.session import get_db
    from tubeingest.main import app
    from tubeingest.services.throttle import get_submission_throttle

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_youtube_client] = lambda: youtube_client
    app.dependency_overrides[get_submission_throttle] = lambda: throttle
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": "Bearer test-admin-token"}
