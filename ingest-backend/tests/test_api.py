from datetime import datetime, timedelta, timezone

import pytest

from conftest import CHANNEL_ID, OTHER_CHANNEL_ID, utc

CRON_HEADERS = {"Authorization": "Bearer test-cron-secret"}


@pytest.fixture
def added_channel(api, youtube_api, admin_headers):
    youtube_api.add_channel(title="Test Channel", handle="tester")
    resp = api.post("/api/channels", json={"input": "@tester"}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_health(api):
    assert api.get("/health").json() == {"ok": True}


# ---------------------------------------------------------------------------
# Admin auth
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("method,path", [
    ("post", "/api/channels"),
    ("post", "/api/channels/resolve"),
    ("post", "/api/channels/preview"),
    ("get", "/api/channels/stats"),
    ("post", "/api/channels/some-id/scrape-all"),
    ("post", "/api/channels/some-id/scrape-new"),
])
def test_admin_routes_require_token(api, method, path):
    assert getattr(api, method)(path).status_code == 401
    wrong = {"Authorization": "Bearer nope"}
    assert getattr(api, method)(path, headers=wrong).status_code == 401


def test_channel_list_is_public(api, added_channel):
    resp = api.get("/api/channels")
    assert resp.status_code == 200
    assert [c["youtube_channel_id"] for c in resp.json()] == [CHANNEL_ID]


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------

def test_add_channel(added_channel):
    assert added_channel["youtube_channel_id"] == CHANNEL_ID
    assert added_channel["name"] == "Test Channel"
    assert added_channel["scrape_frequency"] == "daily"
    assert added_channel["is_active"] is True
    assert added_channel["last_scraped_at"] is None


def test_add_existing_channel_conflicts(api, added_channel, admin_headers):
    resp = api.post("/api/channels", json={"input": CHANNEL_ID}, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["error_code"] == "ConflictError"


def test_add_unknown_channel_is_404(api, admin_headers):
    resp = api.post("/api/channels", json={"input": "@nobody"}, headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["error_code"] == "NotFoundError"


def test_resolve(api, youtube_api, admin_headers):
    youtube_api.add_channel(handle="tester")
    resp = api.post("/api/channels/resolve", json={"url": "https://youtube.com/@tester"}, headers=admin_headers)
    assert resp.json() == {"channel_id": CHANNEL_ID, "error": None}

    resp = api.post("/api/channels/resolve", json={"url": "@nobody"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["channel_id"] is None
    assert resp.json()["error"]


def test_resolve_empty_handle_is_400(api, admin_headers):
    resp = api.post("/api/channels/resolve", json={"url": "@"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "ValidationError"


def test_resolve_upstream_failure_is_502(api, youtube_api, admin_headers):
    youtube_api.failures["channels"] = 403
    resp = api.post("/api/channels/resolve", json={"url": "@tester"}, headers=admin_headers)
    assert resp.status_code == 502
    assert resp.json()["error_code"] == "ServiceError"


def test_preview(api, youtube_api, admin_headers):
    youtube_api.add_channel(title="Preview &amp; Co", subscribers="42")
    resp = api.post("/api/channels/preview", json={"input": CHANNEL_ID}, headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == CHANNEL_ID
    assert body["name"] == "Preview & Co"
    assert body["subscriber_count"] == 42
    assert api.get("/api/channels").json() == []


def test_update_channel(api, added_channel, admin_headers):
    resp = api.patch(
        f"/api/channels/{added_channel['id']}",
        json={"is_active": False, "scrape_frequency": "manual"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False
    assert resp.json()["scrape_frequency"] == "manual"
    assert api.get("/api/channels", params={"active_only": True}).json() == []

    resp = api.patch("/api/channels/missing", json={"is_active": True}, headers=admin_headers)
    assert resp.status_code == 404


def test_scrape_all_and_new(api, youtube_api, added_channel, admin_headers):
    channel_id = added_channel["id"]
    for i in range(3):
        youtube_api.add_upload(f"video{i:06d}", utc(2024, 5, 1 + i))

    resp = api.post(f"/api/channels/{channel_id}/scrape-all", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["videos_found"] == 3
    assert body["videos_created"] == 3
    assert body["watermark"] is not None

    # Published before the watermark, so invisible to an incremental scrape
    youtube_api.add_upload("latecomer01", utc(2024, 5, 10))
    resp = api.post(f"/api/channels/{channel_id}/scrape-new", headers=admin_headers)
    assert resp.json()["videos_found"] == 0

    stats = api.get("/api/channels/stats", headers=admin_headers).json()
    assert stats["scraped_videos"] == 3
    assert stats["needs_scraping"] == 0


def test_scrape_missing_channel_is_404(api, admin_headers):
    resp = api.post("/api/channels/missing/scrape-new", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Channel not found: missing", "error_code": "NotFoundError"}


def test_scrape_upstream_failure_is_502(api, youtube_api, added_channel, admin_headers):
    youtube_api.failures["playlistItems"] = 500
    resp = api.post(f"/api/channels/{added_channel['id']}/scrape-all", headers=admin_headers)
    assert resp.status_code == 502
    assert api.get("/api/channels").json()[0]["last_scraped_at"] is None


# ---------------------------------------------------------------------------
# Cron
# ---------------------------------------------------------------------------

def test_cron_requires_secret(api, admin_headers):
    assert api.get("/api/cron/scrape-channels").status_code == 401
    assert api.get("/api/cron/scrape-channels", headers=admin_headers).status_code == 401


def test_cron_scrapes_due_channels(api, youtube_api, admin_headers):
    youtube_api.add_channel(CHANNEL_ID, title="Daily One")
    youtube_api.add_channel(OTHER_CHANNEL_ID, title="Manual One")
    api.post("/api/channels", json={"input": CHANNEL_ID}, headers=admin_headers)
    api.post(
        "/api/channels",
        json={"input": OTHER_CHANNEL_ID, "scrape_frequency": "manual"},
        headers=admin_headers,
    )
    youtube_api.add_upload("video000001", datetime.now(timezone.utc) - timedelta(days=2))

    resp = api.get("/api/cron/scrape-channels", headers=CRON_HEADERS)
    assert resp.status_code == 200
    body = resp.json()
    assert body["channels_processed"] == 1
    assert body["total_videos_created"] == 1
    assert body["results"][0]["channel_name"] == "Daily One"
    assert body["errors"] == []

    # Just scraped, so nothing is due on the next run
    assert api.get("/api/cron/scrape-channels", headers=CRON_HEADERS).json()["channels_processed"] == 0


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------

def test_submit_video(api):
    resp = api.post("/api/submissions", json={"video_url": "https://youtu.be/dQw4w9WgXcQ", "title": "Great run"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["youtube_video_id"] == "dQw4w9WgXcQ"
    assert body["status"] == "PENDING"
    assert body["source"] == "SUBMISSION"
    assert body["channel_id"] is None
    assert body["url"] == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def test_submit_duplicate_conflicts(api):
    payload = {"video_url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ"}
    assert api.post("/api/submissions", json=payload).status_code == 201
    assert api.post("/api/submissions", json=payload).status_code == 409


def test_submit_invalid_url_not_counted(api):
    for _ in range(10):
        resp = api.post("/api/submissions", json={"video_url": "https://example.com/watch?v=nope"})
        assert resp.status_code == 400
    assert api.post("/api/submissions", json={"video_url": "https://youtu.be/dQw4w9WgXcQ"}).status_code == 201


def test_submit_rate_limited_per_origin(api):
    for i in range(5):
        resp = api.post("/api/submissions", json={"video_url": f"https://youtu.be/aaaaaaaaaa{i}"})
        assert resp.status_code == 201
    resp = api.post("/api/submissions", json={"video_url": "https://youtu.be/aaaaaaaaaa5"})
    assert resp.status_code == 429
    assert resp.json()["detail"] == "Rate limit exceeded. Please try again later."

    other = {"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}
    resp = api.post("/api/submissions", json={"video_url": "https://youtu.be/aaaaaaaaaa5"}, headers=other)
    assert resp.status_code == 201


# ---------------------------------------------------------------------------
# Channel detail / delete
# ---------------------------------------------------------------------------

def test_channel_detail(api, youtube_api, added_channel, admin_headers):
    for i in range(3):
        youtube_api.add_upload(f"video{i:06d}", utc(2024, 5, 1 + i))
    api.post(f"/api/channels/{added_channel['id']}/scrape-all", headers=admin_headers)

    resp = api.get(f"/api/channels/{added_channel['id']}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Test Channel"
    assert body["video_count"] == 3
    assert [v["youtube_video_id"] for v in body["videos"]] == ["video000002", "video000001", "video000000"]


def test_channel_detail_missing_is_404(api):
    assert api.get("/api/channels/missing").status_code == 404


def test_delete_channel(api, youtube_api, added_channel, admin_headers):
    youtube_api.add_upload("video000001", utc(2024, 5, 1))
    api.post(f"/api/channels/{added_channel['id']}/scrape-all", headers=admin_headers)

    assert api.delete(f"/api/channels/{added_channel['id']}").status_code == 401

    resp = api.delete(f"/api/channels/{added_channel['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["youtube_channel_id"] == CHANNEL_ID
    assert api.get("/api/channels").json() == []
    assert api.get(f"/api/channels/{added_channel['id']}").status_code == 404

    # The video survives and still blocks a duplicate submission
    resp = api.post("/api/submissions", json={"video_url": "https://youtu.be/video000001"})
    assert resp.status_code == 409

    assert api.delete(f"/api/channels/{added_channel['id']}", headers=admin_headers).status_code == 404
