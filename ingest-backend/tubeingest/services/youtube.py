"""
YouTube Data API v3 client.

Resolves the many ways people paste a channel (ID, @handle, profile URLs) to
the canonical UC... id, fetches channel metadata, and walks a channel's
uploads playlist page by page.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import parse_qs, unquote, urlparse

import requests

from tubeingest.core.errors import ConfigurationError, ServiceError, NotFoundError, ValidationError
from tubeingest.core.settings import settings
from tubeingest.services.codecs import decode_html_entities, parse_duration

logger = logging.getLogger(__name__)

CHANNEL_ID_REGEX = re.compile(r'^UC[\w-]{22}$')
VIDEO_ID_REGEX = re.compile(r'^[a-zA-Z0-9_-]{11}$')

YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com"}

MAX_PAGE_SIZE = 50

# Best first
CHANNEL_THUMBNAIL_ORDER = ("high", "medium", "default")
VIDEO_THUMBNAIL_ORDER = ("maxres", "high", "medium", "default")


@dataclass
class ChannelInfo:
    id: str
    name: str
    description: str
    thumbnail_url: str
    subscriber_count: int


@dataclass
class UploadEntry:
    youtube_video_id: str
    title: str
    description: str
    channel_name: str
    thumbnail_url: str
    published_at: datetime
    duration_sec: int


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def default_thumbnail_url(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def uploads_playlist_id(channel_id: str) -> str:
    """Every channel's uploads playlist is its id with UC swapped for UU."""
    if not CHANNEL_ID_REGEX.match(channel_id or ""):
        raise ValidationError(f"Invalid channel ID format: {channel_id}")
    return f"UU{channel_id[2:]}"


def extract_youtube_video_id(url: str) -> str | None:
    """Extract YouTube video ID from watch, short, embed and /v/ URLs."""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None
    host = (parsed.hostname or "").lower()

    candidate = None
    if host == "youtu.be":
        candidate = parsed.path.lstrip("/").split("/")[0]
    elif host in YOUTUBE_HOSTS:
        parts = [p for p in parsed.path.split("/") if p]
        if parts[:1] == ["watch"]:
            candidate = (parse_qs(parsed.query).get("v") or [None])[0]
        elif len(parts) > 1 and parts[0] in ("embed", "v", "shorts"):
            candidate = parts[1]

    if candidate and VIDEO_ID_REGEX.match(candidate):
        return candidate
    return None


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Some backends (SQLite) hand datetimes back without their offset."""
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone.utc)


def _parse_datetime(s: str | None) -> datetime:
    if not s:
        return datetime.now(timezone.utc)
    try:
        return ensure_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))
    except ValueError:
        return datetime.now(timezone.utc)


def _best_thumbnail(thumbnails: Dict[str, Any] | None, order: tuple) -> str:
    thumbnails = thumbnails or {}
    for quality in order:
        url = (thumbnails.get(quality) or {}).get("url")
        if url:
            return url
    return ""


class YouTubeClient:
    """
    Thin wrapper around the Data API endpoints the scraper needs.

    Non-success responses and transport failures raise ServiceError.
    Lookups that legitimately find nothing return None.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.base_url = (base_url or settings.youtube_api_base).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.youtube_request_timeout_seconds

    def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        api_key = self.api_key or settings.youtube_api_key
        if not api_key:
            raise ConfigurationError("YOUTUBE_API_KEY environment variable is not set")

        url = f"{self.base_url}/{endpoint}"
        try:
            resp = self.session.get(url, params={**params, "key": api_key}, timeout=self.timeout)
        except requests.Timeout as e:
            raise ServiceError(f"YouTube API request timed out: {endpoint}") from e
        except requests.RequestException as e:
            raise ServiceError(f"YouTube API request failed: {endpoint}: {e}") from e

        if not resp.ok:
            raise ServiceError(
                f"YouTube API error: {resp.status_code} {resp.reason} ({endpoint})",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise ServiceError(f"YouTube API returned invalid JSON ({endpoint})") from e

    # ------------------------------------------------------------------
    # Channel resolution
    # ------------------------------------------------------------------

    def resolve_handle(self, handle: str) -> Optional[str]:
        """Resolve a @handle (without the @) to a channel ID."""
        data = self._get("channels", {"part": "id", "forHandle": handle})
        items = data.get("items") or []
        return items[0].get("id") if items else None

    def search_channel(self, query: str) -> Optional[str]:
        """Free-text channel search, first hit wins. Used for /c/ and /user/ names."""
        data = self._get("search", {"part": "snippet", "type": "channel", "q": query, "maxResults": 1})
        items = data.get("items") or []
        if not items:
            return None
        return (items[0].get("id") or {}).get("channelId")

    def resolve_channel_id(self, raw_input: str) -> Optional[str]:
        """
        Resolve a YouTube URL, handle or ID to a canonical Channel ID.

        Supports:
        - Direct Channel ID (UC...)            no network call
        - @handle                              handle lookup
        - youtube.com/channel/UC...            no network call
        - youtube.com/@handle                  handle lookup
        - youtube.com/c/name, /user/name       channel search
        - anything that is not a URL           channel search on the raw text

        Returns None when nothing matches. Raises ServiceError when the API
        itself fails, so callers can tell "no such channel" from "try later".
        """
        value = (raw_input or "").strip()
        if not value:
            raise ValidationError("Channel input is empty")

        if CHANNEL_ID_REGEX.match(value):
            return value

        if value.startswith("@"):
            handle = value[1:]
            if not handle:
                raise ValidationError("Handle is empty")
            return self.resolve_handle(handle)

        parsed = urlparse(value)
        # Any scheme with a host counts as a URL; bare "youtube.com/@x" is free text
        if not (parsed.scheme and parsed.netloc):
            return self.search_channel(value)

        if (parsed.hostname or "").lower() not in YOUTUBE_HOSTS:
            logger.info(f"[youtube] Not a YouTube URL: {value}")
            return None

        parts = [unquote(p) for p in parsed.path.split("/") if p]
        if not parts:
            return None

        if parts[0] == "channel" and len(parts) > 1:
            return parts[1] if CHANNEL_ID_REGEX.match(parts[1]) else None

        if parts[0].startswith("@") and len(parts[0]) > 1:
            return self.resolve_handle(parts[0][1:])

        if parts[0] in ("c", "user") and len(parts) > 1:
            return self.search_channel(parts[1])

        return None

    # ------------------------------------------------------------------
    # Channel metadata
    # ------------------------------------------------------------------

    def get_channel_info(self, channel_id: str) -> ChannelInfo:
        data = self._get("channels", {"part": "snippet,statistics", "id": channel_id})
        items = data.get("items") or []
        if not items:
            raise NotFoundError(f"Channel not found: {channel_id}")

        channel = items[0]
        snippet = channel.get("snippet") or {}
        statistics = channel.get("statistics") or {}
        try:
            subscriber_count = int(statistics.get("subscriberCount") or 0)
        except (TypeError, ValueError):
            subscriber_count = 0

        return ChannelInfo(
            id=channel.get("id") or channel_id,
            name=decode_html_entities(snippet.get("title")),
            description=decode_html_entities(snippet.get("description")),
            thumbnail_url=_best_thumbnail(snippet.get("thumbnails"), CHANNEL_THUMBNAIL_ORDER),
            subscriber_count=subscriber_count,
        )

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    def fetch_playlist_page(self, playlist_id: str, page_size: int, page_token: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"part": "snippet", "playlistId": playlist_id, "maxResults": page_size}
        if page_token:
            params["pageToken"] = page_token
        return self._get("playlistItems", params)

    def fetch_durations(self, video_ids: List[str]) -> Dict[str, int]:
        """
        One batched videos.list call for a whole page.
        A failure here only costs the durations, they fall back to 0.
        """
        if not video_ids:
            return {}
        try:
            data = self._get("videos", {"part": "contentDetails", "id": ",".join(video_ids)})
        except ServiceError as e:
            logger.warning(f"[youtube] Duration lookup failed for {len(video_ids)} videos: {e}")
            return {}
        return {
            item["id"]: parse_duration((item.get("contentDetails") or {}).get("duration"))
            for item in (data.get("items") or [])
            if item.get("id")
        }

    def iter_upload_pages(
        self,
        channel_id: str,
        since: Optional[datetime] = None,
        page_size: int = MAX_PAGE_SIZE,
        max_pages: int = 200,
    ) -> "UploadPager":
        return UploadPager(self, channel_id, since=since, page_size=page_size, max_pages=max_pages)

    def list_channel_uploads(
        self,
        channel_id: str,
        since: Optional[datetime] = None,
        page_size: int = MAX_PAGE_SIZE,
        max_pages: int = 200,
    ) -> List[UploadEntry]:
        """
        Collect a channel's uploads, newest first.

        With `since`, items published before the cutoff are dropped even when
        they sit on a page that had to be fetched to find the stopping point.
        """
        pager = self.iter_upload_pages(channel_id, since=since, page_size=page_size, max_pages=max_pages)
        cutoff = pager.since
        uploads: List[UploadEntry] = []
        for page in pager:
            if cutoff is None:
                uploads.extend(page)
            else:
                uploads.extend(e for e in page if e.published_at >= cutoff)
        return uploads


class UploadPager:
    """
    Finite, sequential producer of upload pages for one channel.

    Each page's token comes from the previous response, so pages are fetched
    strictly one after another. Iterating again starts over from page one.

    Stops after a page with no items, after the last page, after `max_pages`
    pages, or after a page holding any item published before `since`. That
    page is still yielded whole; filtering is the consumer's job. This
    assumes the playlist is newest first.
    """

    def __init__(
        self,
        client: YouTubeClient,
        channel_id: str,
        since: Optional[datetime] = None,
        page_size: int = MAX_PAGE_SIZE,
        max_pages: int = 200,
    ):
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")
        if max_pages < 1:
            raise ValidationError(f"max_pages must be at least 1, got {max_pages}")

        self.client = client
        self.channel_id = channel_id
        self.playlist_id = uploads_playlist_id(channel_id)
        self.since = ensure_utc(since)
        self.page_size = page_size
        self.max_pages = max_pages

    def __iter__(self) -> Iterator[List[UploadEntry]]:
        page_token: Optional[str] = None
        pages = 0

        while pages < self.max_pages:
            data = self.client.fetch_playlist_page(self.playlist_id, self.page_size, page_token)
            items = data.get("items") or []
            if not items:
                return

            snippets = []
            for item in items:
                snippet = item.get("snippet") or {}
                video_id = (snippet.get("resourceId") or {}).get("videoId")
                if not video_id:
                    continue
                snippets.append((video_id, snippet))

            durations = self.client.fetch_durations([video_id for video_id, _ in snippets])
            page = [self._to_entry(video_id, snippet, durations) for video_id, snippet in snippets]
            pages += 1
            logger.debug(f"[youtube] {self.playlist_id} page {pages}: {len(page)} uploads")
            yield page

            if self.since is not None and any(e.published_at < self.since for e in page):
                return

            page_token = data.get("nextPageToken")
            if not page_token:
                return

        logger.warning(f"[youtube] {self.playlist_id} stopped at page limit ({self.max_pages})")

    @staticmethod
    def _to_entry(video_id: str, snippet: Dict[str, Any], durations: Dict[str, int]) -> UploadEntry:
        return UploadEntry(
            youtube_video_id=video_id,
            title=decode_html_entities(snippet.get("title")),
            description=decode_html_entities(snippet.get("description")),
            channel_name=decode_html_entities(snippet.get("channelTitle")),
            thumbnail_url=_best_thumbnail(snippet.get("thumbnails"), VIDEO_THUMBNAIL_ORDER),
            published_at=_parse_datetime(snippet.get("publishedAt")),
            duration_sec=durations.get(video_id, 0),
        )
