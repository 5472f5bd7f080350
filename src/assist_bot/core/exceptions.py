from __future__ import annotations


class AssistBotError(Exception):
    """Base error for the assist bot."""

    recoverable = False
    severity = "error"


class ConfigError(AssistBotError):
    """Raised when process configuration is missing or invalid."""


class TransientError(AssistBotError):
    """Error that may succeed if the same operation is retried."""

    recoverable = True
    severity = "warning"


class PermanentError(AssistBotError):
    """Error that will fail again on retry."""

    recoverable = False
    severity = "error"


class SessionInvariantError(AssistBotError):
    """An inbound event or stored message does not have the expected shape."""
