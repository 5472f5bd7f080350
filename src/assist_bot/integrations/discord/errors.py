from __future__ import annotations

from typing import Optional

from ...core.exceptions import PermanentError, TransientError


class DiscordError(Exception):
    """Base Discord integration error."""


class DiscordConfigError(DiscordError):
    """Discord integration configuration error."""


class DiscordAPIError(DiscordError):
    """Discord API request error."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DiscordTransientError(DiscordAPIError, TransientError):
    """Retryable Discord API error (server errors, network issues)."""


class DiscordPermanentError(DiscordAPIError, PermanentError):
    """Non-retryable Discord API error (auth failures, invalid requests)."""

    recoverable = PermanentError.recoverable
    severity = PermanentError.severity


class DiscordNotFoundError(DiscordPermanentError):
    """The target message, channel or thread no longer exists."""
