"""Discord REST API client service (bot token)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from cliptime.shared.errors import DiscordAPIError

logger = logging.getLogger(__name__)


class DiscordAPIClient:
    """Client for the Discord bot REST API."""

    DISCORD_API_URL = "https://discord.com/api/v10"

    def __init__(
        self,
        bot_token: str,
        *,
        timeout: float = 10.0,
        http: httpx.AsyncClient | None = None,
    ):
        self.bot_token = bot_token

        # Shared HTTP client: reuses TCP connections across requests
        self._http = http or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the shared HTTP client. Call on app shutdown."""
        await self._http.aclose()

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bot {self.bot_token}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._http.request(
                method,
                f"{self.DISCORD_API_URL}/{path}",
                headers=self._headers(),
                **kwargs,
            )
        except httpx.HTTPError as e:
            raise DiscordAPIError(f"Discord {method} /{path} failed: {type(e).__name__}: {e}") from e

        if response.status_code not in (200, 201):
            try:
                detail: object = response.json()
            except ValueError:
                detail = response.text
            raise DiscordAPIError(
                f"Discord {method} /{path} returned {response.status_code}",
                status=response.status_code,
                detail=detail,
            )
        try:
            data: dict[str, Any] = response.json()
        except ValueError:
            raise DiscordAPIError(
                f"Discord {method} /{path} returned a non-JSON body",
                status=response.status_code,
                detail=response.text[:200],
            ) from None
        if not isinstance(data, dict):
            raise DiscordAPIError(
                f"Discord {method} /{path} returned an unexpected body",
                status=response.status_code,
            )
        return data

    async def send_embed(
        self,
        channel_id: str,
        embed: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Post a message with a single embed to a channel."""
        kwargs: dict[str, Any] = {"json": {"embeds": [embed]}}
        if timeout is not None:
            kwargs["timeout"] = timeout
        return await self._request("POST", f"channels/{channel_id}/messages", **kwargs)

    async def get_bot_user(self) -> dict[str, Any]:
        """The bot's own user object; doubles as a token liveness check."""
        return await self._request("GET", "users/@me")
