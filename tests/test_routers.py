"""HTTP surface tests.

The app is used without entering its lifespan, so no database connection
is attempted; the service graph is swapped for mocks.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from cliptime.api.app import create_app
from cliptime.api.core.config import get_settings
from cliptime.api.core.dependencies import Services, get_services
from cliptime.api.routers import cron_router
from cliptime.api.services.clip_service import ClipResult
from cliptime.api.services.highlights import HighlightPosted, HighlightSkipped
from cliptime.api.services.leaderboard import ChatterRank
from cliptime.shared.errors import (
    DiscordAPIError,
    InvalidIdentifier,
    MissingParameter,
    UnresolvedPlaceholder,
    YouTubeAPIError,
)
from cliptime.shared.models import Clip

from .conftest import BROADCAST_START, CHANNEL_ID, CHAT_ID

CRON_SECRET = "cron-s3cret"
DC_SECRET = "dc-s3cret"


@pytest.fixture
def services():
    return Services(
        broadcasts=AsyncMock(),
        discovery=AsyncMock(),
        clips=AsyncMock(),
        highlights=AsyncMock(),
        leaderboard=AsyncMock(),
    )


@pytest.fixture
def client(monkeypatch, services):
    monkeypatch.setenv("DATABASE_URL", "postgresql://user:pw@localhost:5432/cliptime")
    monkeypatch.setenv("YOUTUBE_API_KEY", "api-key")
    monkeypatch.setenv("CRON_SECRET", CRON_SECRET)
    monkeypatch.setenv("CRON_SECRET_DC_KEEP_ALIVE", DC_SECRET)
    monkeypatch.setenv("TOOL_USED", "cliptime-test")
    get_settings.cache_clear()

    app = create_app()
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    get_settings.cache_clear()


def stored(delay: int) -> ClipResult:
    clip = Clip(
        id=1,
        channel_id=CHANNEL_ID,
        chat_id=CHAT_ID,
        delay=delay,
        message="",
        user_name="viewer",
        user_timestamp=BROADCAST_START,
    )
    return ClipResult(clip=clip)


# ==================== /api/clip ====================


def test_clip_via_query_string(client, services):
    services.clips.submit.return_value = stored(30)

    resp = client.get(
        "/api/clip",
        params={"user": "viewer", "channelid": CHANNEL_ID, "chatId": CHAT_ID, "msg": "gg", "delay": "30"},
    )

    assert resp.status_code == 200
    assert resp.text == "Timestamped (with -30s delay) by viewer. Tool used: cliptime-test"
    services.clips.submit.assert_awaited_once_with("viewer", CHANNEL_ID, CHAT_ID, "gg", "30")


def test_clip_via_json_body(client, services):
    services.clips.submit.return_value = stored(5)

    resp = client.post(
        "/api/clip",
        json={"user": "viewer", "channelId": CHANNEL_ID, "chatid": CHAT_ID, "delay": 5},
    )

    assert resp.status_code == 200
    services.clips.submit.assert_awaited_once_with("viewer", CHANNEL_ID, CHAT_ID, "", 5)


def test_clip_via_form_body(client, services):
    services.clips.submit.return_value = stored(0)

    resp = client.post(
        "/api/clip",
        data={"user": "viewer", "channelid": CHANNEL_ID, "chatId": CHAT_ID, "delay": "0"},
    )

    assert resp.status_code == 200
    services.clips.submit.assert_awaited_once_with("viewer", CHANNEL_ID, CHAT_ID, "", "0")


@pytest.mark.parametrize(
    "error,text",
    [
        (MissingParameter(), "Missing parameters"),
        (UnresolvedPlaceholder(), "Nightbot variables unresolved"),
        (InvalidIdentifier(), "Invalid IDs"),
    ],
)
def test_clip_rejected(client, services, error, text):
    services.clips.submit.side_effect = error
    resp = client.get("/api/clip", params={"user": "viewer"})
    assert resp.status_code == 400
    assert resp.text == text


def test_clip_store_failure(client, services):
    services.clips.submit.side_effect = ConnectionError("db down")
    resp = client.get("/api/clip", params={"user": "viewer"})
    assert resp.status_code == 500
    assert resp.text == "Failed to store clip"


def test_clip_before_database_ready(client):
    client.app.dependency_overrides.clear()
    resp = client.get("/api/clip")
    assert resp.status_code == 503


# ==================== cron ====================


@pytest.mark.parametrize("path", ["/api/monitor-streams", "/api/cron/highlights?channel_id=x"])
def test_cron_rejects_bad_secret(client, path):
    resp = client.post(path, params={"secret": "wrong"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}


def test_monitor_streams_accepts_header_secret(client):
    resp = client.get("/api/monitor-streams", headers={"x-cron-secret": CRON_SECRET})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_dc_keepalive_uses_its_own_secret(client, monkeypatch):
    discord = AsyncMock()
    discord.get_bot_user.return_value = {"username": "clipbot"}
    monkeypatch.setattr(cron_router, "get_discord_api", lambda: discord)

    assert client.get("/api/dc-keepalive", params={"secret": CRON_SECRET}).status_code == 401
    resp = client.get("/api/dc-keepalive", params={"secret": DC_SECRET})
    assert resp.json() == {"status": "ok", "bot": "clipbot"}


def test_dc_keepalive_discord_down(client, monkeypatch):
    discord = AsyncMock()
    discord.get_bot_user.side_effect = DiscordAPIError("unauthorized", status=401)
    monkeypatch.setattr(cron_router, "get_discord_api", lambda: discord)

    resp = client.get("/api/dc-keepalive", params={"secret": DC_SECRET})
    assert resp.status_code == 502


def test_highlights_posted(client, services):
    services.highlights.compile_highlights.return_value = HighlightPosted(
        video_id="vid1", clip_count=3, comment_id="thread-1"
    )

    resp = client.post(
        "/api/cron/highlights", params={"channel_id": CHANNEL_ID, "secret": CRON_SECRET}
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "video_id": "vid1",
        "clip_count": 3,
        "comment_id": "thread-1",
        "outcome": "posted",
    }


def test_highlights_skipped(client, services):
    services.highlights.compile_highlights.return_value = HighlightSkipped(reason="nothing finished")
    resp = client.post("/api/cron/highlights", params={"channel_id": CHANNEL_ID, "secret": CRON_SECRET})
    assert resp.json()["outcome"] == "skipped"


def test_highlights_invalid_channel(client, services):
    resp = client.post("/api/cron/highlights", params={"channel_id": "nope", "secret": CRON_SECRET})
    assert resp.status_code == 400
    services.highlights.compile_highlights.assert_not_awaited()


def test_highlights_post_failure(client, services):
    services.highlights.compile_highlights.side_effect = YouTubeAPIError("forbidden", status=403)
    resp = client.post("/api/cron/highlights", params={"channel_id": CHANNEL_ID, "secret": CRON_SECRET})
    assert resp.status_code == 502


# ==================== leaderboard / health ====================


def test_leaderboard(client, services):
    services.leaderboard.top_chatters.return_value = [ChatterRank("B", 30), ChatterRank("A", 10)]

    resp = client.get(f"/api/leaderboard/{CHANNEL_ID}", params={"limit": 2})

    assert resp.status_code == 200
    assert resp.json() == [{"user": "B", "messages": 30}, {"user": "A", "messages": 10}]
    services.leaderboard.top_chatters.assert_awaited_once_with(CHANNEL_ID, 2)


def test_leaderboard_rejects_bad_input(client):
    assert client.get("/api/leaderboard/not-a-channel").status_code == 400
    assert client.get(f"/api/leaderboard/{CHANNEL_ID}", params={"limit": 0}).status_code == 422


def test_health_endpoints(client):
    assert client.get("/ping").text == "pong"
    assert client.get("/health").json()["status"] == "healthy"
