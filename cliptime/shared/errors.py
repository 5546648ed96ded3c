"""Exception types shared by the clip ingestion path and the API clients."""

from __future__ import annotations


class ClipRequestError(ValueError):
    """A clip webhook request was rejected before any side effect.

    ``public_message`` is the plain-text body returned to the chat bot.
    """

    public_message = "Bad request"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.public_message)
        self.detail = detail or self.public_message


class MissingParameter(ClipRequestError):
    public_message = "Missing parameters"


class UnresolvedPlaceholder(ClipRequestError):
    public_message = "Nightbot variables unresolved"


class InvalidIdentifier(ClipRequestError):
    public_message = "Invalid IDs"


class MalformedTimestamp(ValueError):
    """An offset string could not be parsed back into seconds."""


class ProviderError(RuntimeError):
    """An upstream HTTP API call failed."""

    def __init__(self, message: str, status: int | None = None, detail: object = None):
        super().__init__(message)
        self.status = status
        self.detail = detail

    @property
    def classification(self) -> str:
        """Short label for logs: auth / rate_limit / not_found / http / transport."""
        if self.status is None:
            return "transport"
        if self.status in (401, 403):
            return "auth"
        if self.status == 429:
            return "rate_limit"
        if self.status == 404:
            return "not_found"
        return "http"


class YouTubeAPIError(ProviderError):
    pass


class DiscordAPIError(ProviderError):
    pass
