import json
from unittest.mock import AsyncMock

import httpx
import pytest

from cliptime.api.services.discord_api import DiscordAPIClient
from cliptime.api.services.notifier import ClipNotifier, build_clip_embed
from cliptime.shared.errors import DiscordAPIError

DESTINATION = "123456789012345678"


def discord_client(handler) -> DiscordAPIClient:
    return DiscordAPIClient("bot-token", http=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_embed_links_to_offset():
    embed = build_clip_embed("vid1", "Friday stream", "what a shot", "viewer", "1:02:03")
    assert embed["title"] == "what a shot"
    assert embed["url"] == "https://youtube.com/watch?v=vid1&t=3723s"
    assert embed["image"]["url"] == "https://img.youtube.com/vi/vid1/maxresdefault.jpg"
    assert [f["value"] for f in embed["fields"]] == ["Friday stream", "viewer", "1:02:03"]


def test_embed_defaults():
    embed = build_clip_embed("vid1", None, "", None, "00:10")
    assert embed["title"] == "📎 New Clip"
    assert [f["value"] for f in embed["fields"]] == ["Unknown", "Unknown", "00:10"]


@pytest.mark.asyncio
async def test_posts_embed_with_bot_token():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": "m1"})

    notifier = ClipNotifier(discord_client(handler))
    assert await notifier.notify(DESTINATION, "vid1", "Stream", "gg", "viewer", "04:30") is True

    (request,) = requests
    assert request.method == "POST"
    assert request.url.path == f"/api/v10/channels/{DESTINATION}/messages"
    assert request.headers["Authorization"] == "Bot bot-token"
    body = json.loads(request.content)
    assert body["embeds"][0]["url"].endswith("&t=270s")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "destination,video_id,offset",
    [(None, "vid1", "04:30"), (DESTINATION, None, "04:30"), (DESTINATION, "vid1", None)],
)
async def test_missing_data_is_a_no_op(destination, video_id, offset):
    discord = AsyncMock(spec=DiscordAPIClient)
    notifier = ClipNotifier(discord)
    assert await notifier.notify(destination, video_id, "t", "m", "u", offset) is False
    discord.send_embed.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403, 404, 429, 500])
async def test_http_failures_are_reported_not_raised(status):
    notifier = ClipNotifier(discord_client(lambda request: httpx.Response(status, json={"message": "nope"})))
    assert await notifier.notify(DESTINATION, "vid1", "t", "m", "u", "00:05") is False


@pytest.mark.asyncio
async def test_transport_failure_is_reported_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    notifier = ClipNotifier(discord_client(handler))
    assert await notifier.notify(DESTINATION, "vid1", "t", "m", "u", "00:05") is False


@pytest.mark.asyncio
async def test_bot_user_lookup():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v10/users/@me"
        return httpx.Response(200, json={"id": "1", "username": "clipbot"})

    client = discord_client(handler)
    assert (await client.get_bot_user())["username"] == "clipbot"
    await client.close()


@pytest.mark.asyncio
async def test_non_json_success_body_is_reported_not_raised():
    client = discord_client(lambda request: httpx.Response(200, text="ok"))
    notifier = ClipNotifier(client)
    assert await notifier.notify(DESTINATION, "vid1", "t", "m", "u", "00:05") is False

    with pytest.raises(DiscordAPIError) as exc:
        await client.send_embed(DESTINATION, {"title": "x"})
    assert exc.value.status == 200


@pytest.mark.asyncio
async def test_unexpected_client_error_is_reported_not_raised():
    discord = AsyncMock(spec=DiscordAPIClient)
    discord.send_embed.side_effect = RuntimeError("client closed")
    notifier = ClipNotifier(discord)
    assert await notifier.notify(DESTINATION, "vid1", "t", "m", "u", "00:05") is False
