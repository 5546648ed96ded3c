"""YouTube Data API v3 client service.

Credential types:
- API key: public read endpoints (search, videos, liveChat/messages).
- OAuth refresh token: the one write endpoint (commentThreads.insert).
  The access token is fetched from the refresh token on demand and cached
  until shortly before it expires.

Every call raises :class:`YouTubeAPIError` on failure; callers decide
whether the failure is fatal for them.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Any

import httpx

from cliptime.shared.errors import YouTubeAPIError
from cliptime.shared.models.broadcast import LiveStreamingDetails, VideoSearchResult

logger = logging.getLogger(__name__)

YOUTUBE_BASE = "https://www.googleapis.com/youtube/v3"
OAUTH_TOKEN_URL = "https://oauth2.googleapis.com/token"

# liveChatMessages.list caps maxResults at 2000; the aggregators page in 200s
CHAT_PAGE_SIZE = 200


def parse_rfc3339(value: str | None) -> datetime | None:
    """Parse the RFC 3339 timestamps YouTube returns (``...Z`` suffix)."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable timestamp from YouTube: {value!r}")
        return None


class YouTubeAPIClient:
    """Client for the YouTube Data API.

    Manages a shared httpx client for connection reuse and caches the OAuth
    access token used for comment posting.
    """

    def __init__(
        self,
        api_key: str,
        *,
        client_id: str = "",
        client_secret: str = "",
        refresh_token: str = "",
        http: httpx.AsyncClient | None = None,
    ):
        if not api_key:
            raise ValueError("YouTube API key is required")

        self.api_key = api_key
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token

        # Shared HTTP client: reuses TCP connections across requests
        self._http = http or httpx.AsyncClient(timeout=15.0)

        self._access_token: str | None = None
        self._access_token_expires_at: float = 0.0
        self._access_token_lock = asyncio.Lock()

    async def close(self) -> None:
        """Close the shared HTTP client. Call on app shutdown."""
        await self._http.aclose()

    @property
    def can_post_comments(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(
                method,
                f"{YOUTUBE_BASE}/{path}",
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise YouTubeAPIError(f"YouTube {method} /{path} failed: {type(e).__name__}: {e}") from e

        if response.status_code != 200:
            detail: object = response.text
            try:
                detail = response.json().get("error", {}).get("message", response.text)
            except (ValueError, AttributeError):
                pass
            raise YouTubeAPIError(
                f"YouTube {method} /{path} returned {response.status_code}",
                status=response.status_code,
                detail=detail,
            )
        try:
            data: dict[str, Any] = response.json()
        except ValueError:
            raise YouTubeAPIError(
                f"YouTube {method} /{path} returned a non-JSON body",
                status=response.status_code,
                detail=response.text[:200],
            ) from None
        if not isinstance(data, dict):
            raise YouTubeAPIError(
                f"YouTube {method} /{path} returned an unexpected body",
                status=response.status_code,
            )
        return data

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        return await self._request("GET", path, params={**params, "key": self.api_key})

    async def _ensure_access_token(self) -> str:
        """Return a cached OAuth access token, refreshing only when expired."""
        now = time.monotonic()
        if self._access_token and now < self._access_token_expires_at:
            return self._access_token

        async with self._access_token_lock:
            now = time.monotonic()
            if self._access_token and now < self._access_token_expires_at:
                return self._access_token

            if not self.can_post_comments:
                raise YouTubeAPIError("YouTube OAuth credentials are not configured", status=401)

            try:
                response = await self._http.post(
                    OAUTH_TOKEN_URL,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "refresh_token": self.refresh_token,
                        "grant_type": "refresh_token",
                    },
                )
            except httpx.HTTPError as e:
                raise YouTubeAPIError(f"Token refresh failed: {type(e).__name__}: {e}") from e

            if response.status_code != 200:
                raise YouTubeAPIError(
                    f"Token refresh returned {response.status_code}",
                    status=response.status_code,
                    detail=response.text,
                )

            try:
                data = response.json()
            except ValueError:
                raise YouTubeAPIError(
                    "Token refresh returned a non-JSON body", status=response.status_code
                ) from None
            token = data.get("access_token") if isinstance(data, dict) else None
            if not token:
                raise YouTubeAPIError("No access_token in refresh response", status=401)

            # Google returns expires_in in seconds; refresh 5 min early
            expires_in = int(data.get("expires_in", 0))
            self._access_token = token
            self._access_token_expires_at = now + max(expires_in - 300, 0)
            logger.debug("Refreshed YouTube OAuth access token")
            return token

    # ------------------------------------------------------------------
    # Search / videos
    # ------------------------------------------------------------------

    async def search_videos(
        self,
        channel_id: str,
        event_type: str,
        *,
        order: str = "date",
        max_results: int = 1,
    ) -> list[VideoSearchResult]:
        """Search a channel's broadcasts by event type (live / completed)."""
        data = await self._get(
            "search",
            {
                "part": "snippet",
                "channelId": channel_id,
                "eventType": event_type,
                "type": "video",
                "order": order,
                "maxResults": max_results,
            },
        )
        results = []
        for item in data.get("items", []):
            video_id = (item.get("id") or {}).get("videoId")
            if not video_id:
                continue
            results.append(
                VideoSearchResult(
                    video_id=video_id,
                    title=(item.get("snippet") or {}).get("title"),
                )
            )
        return results

    async def get_live_details(self, video_id: str) -> LiveStreamingDetails | None:
        """``liveStreamingDetails`` for a video, or None if the video has none."""
        data = await self._get("videos", {"part": "liveStreamingDetails", "id": video_id})
        items = data.get("items", [])
        if not items:
            return None
        details = items[0].get("liveStreamingDetails")
        if not details:
            return None
        return LiveStreamingDetails(
            actual_start=parse_rfc3339(details.get("actualStartTime")),
            scheduled_start=parse_rfc3339(details.get("scheduledStartTime")),
            actual_end=parse_rfc3339(details.get("actualEndTime")),
            active_live_chat_id=details.get("activeLiveChatId"),
        )

    # ------------------------------------------------------------------
    # Live chat
    # ------------------------------------------------------------------

    async def list_chat_messages(
        self,
        live_chat_id: str,
        page_token: str | None = None,
        *,
        max_results: int = CHAT_PAGE_SIZE,
    ) -> tuple[list[dict], str | None]:
        """One page of live chat messages and the continuation token."""
        params: dict[str, Any] = {
            "liveChatId": live_chat_id,
            "part": "snippet,authorDetails",
            "maxResults": max_results,
        }
        if page_token:
            params["pageToken"] = page_token

        data = await self._get("liveChat/messages", params)
        return data.get("items", []), data.get("nextPageToken")

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def post_comment(self, video_id: str, text: str) -> str | None:
        """Post a top-level comment on a video. Returns the comment thread id."""
        token = await self._ensure_access_token()
        data = await self._request(
            "POST",
            "commentThreads",
            params={"part": "snippet"},
            json={
                "snippet": {
                    "videoId": video_id,
                    "topLevelComment": {"snippet": {"textOriginal": text}},
                }
            },
            headers={"Authorization": f"Bearer {token}"},
        )
        comment_id = data.get("id")
        logger.info(f"Posted comment {comment_id} on video {video_id}")
        return comment_id
