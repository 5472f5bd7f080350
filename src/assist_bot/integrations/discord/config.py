from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .constants import (
    DISCORD_INTENT_GUILD_MESSAGES,
    DISCORD_INTENT_GUILDS,
    DISCORD_INTENT_MESSAGE_CONTENT,
)
from .errors import DiscordConfigError
from .tags import DEFAULT_TAG_CATALOG, MAX_TAG_OPTIONS

DEFAULT_BOT_TOKEN_ENV = "TOKEN"
DEFAULT_GUILD_ID_ENV = "GUILD_ID"
DEFAULT_HELP_CHANNEL_NAME = "help"
DEFAULT_FAQ_CHANNEL_NAME = "faq"
DEFAULT_TITLE_TIMEOUT_SECONDS = 600.0
DEFAULT_CLOSE_DELAY_SECONDS = 1.0
DEFAULT_INTENTS = (
    DISCORD_INTENT_GUILDS
    | DISCORD_INTENT_GUILD_MESSAGES
    | DISCORD_INTENT_MESSAGE_CONTENT
)
PROMPT_TARGET_CHANNEL = "channel"
PROMPT_TARGET_THREAD = "thread"
PROMPT_TARGET_OPTIONS = frozenset({PROMPT_TARGET_CHANNEL, PROMPT_TARGET_THREAD})


class DiscordBotConfigError(DiscordConfigError):
    """Raised when discord bot config is invalid."""


@dataclass(frozen=True)
class DiscordBotConfig:
    root: Path
    bot_token_env: str
    guild_id_env: str
    bot_token: str
    guild_id: str
    help_channel_name: str
    faq_channel_name: str
    title_timeout_seconds: float
    close_delay_seconds: float
    intents: int
    tags: tuple[str, ...]
    prompt_target: str = PROMPT_TARGET_CHANNEL

    @classmethod
    def from_raw(cls, *, root: Path, raw: dict[str, Any]) -> "DiscordBotConfig":
        cfg: dict[str, Any] = raw if isinstance(raw, dict) else {}
        bot_token_env = _parse_name(
            cfg.get("bot_token_env", DEFAULT_BOT_TOKEN_ENV),
            key="discord_bot.bot_token_env",
        )
        guild_id_env = _parse_name(
            cfg.get("guild_id_env", DEFAULT_GUILD_ID_ENV),
            key="discord_bot.guild_id_env",
        )

        bot_token = (os.environ.get(bot_token_env) or "").strip()
        if not bot_token:
            raise DiscordBotConfigError(
                f"Expected a bot token in the environment variable {bot_token_env}"
            )
        guild_id = (os.environ.get(guild_id_env) or "").strip()
        if not guild_id:
            raise DiscordBotConfigError(
                f"Expected a guild ID in the environment variable {guild_id_env}"
            )
        if not guild_id.isdigit():
            raise DiscordBotConfigError(
                f"Environment variable {guild_id_env} must be a numeric guild ID"
            )

        intents_value = cfg.get("intents", DEFAULT_INTENTS)
        if not isinstance(intents_value, int) or isinstance(intents_value, bool):
            raise DiscordBotConfigError("discord_bot.intents must be an integer")
        if intents_value < 0:
            raise DiscordBotConfigError("discord_bot.intents must be >= 0")

        bootstrap_raw = cfg.get("bootstrap")
        bootstrap_cfg = bootstrap_raw if isinstance(bootstrap_raw, dict) else {}
        prompt_target = (
            str(bootstrap_cfg.get("prompt_target", PROMPT_TARGET_CHANNEL))
            .strip()
            .lower()
        )
        if prompt_target not in PROMPT_TARGET_OPTIONS:
            raise DiscordBotConfigError(
                "discord_bot.bootstrap.prompt_target must be 'channel' or 'thread'"
            )

        return cls(
            root=root,
            bot_token_env=bot_token_env,
            guild_id_env=guild_id_env,
            bot_token=bot_token,
            guild_id=guild_id,
            help_channel_name=_parse_name(
                cfg.get("help_channel_name", DEFAULT_HELP_CHANNEL_NAME),
                key="discord_bot.help_channel_name",
            ),
            faq_channel_name=_parse_name(
                cfg.get("faq_channel_name", DEFAULT_FAQ_CHANNEL_NAME),
                key="discord_bot.faq_channel_name",
            ),
            title_timeout_seconds=_parse_seconds(
                cfg.get("title_timeout_seconds"),
                default=DEFAULT_TITLE_TIMEOUT_SECONDS,
                key="discord_bot.title_timeout_seconds",
                allow_zero=False,
            ),
            close_delay_seconds=_parse_seconds(
                cfg.get("close_delay_seconds"),
                default=DEFAULT_CLOSE_DELAY_SECONDS,
                key="discord_bot.close_delay_seconds",
                allow_zero=True,
            ),
            intents=intents_value,
            tags=_parse_tags(cfg.get("tags")),
            prompt_target=prompt_target,
        )


def _parse_name(value: Any, *, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise DiscordBotConfigError(f"{key} must be a non-empty string")
    return value.strip()


def _parse_seconds(
    value: Any, *, default: float, key: str, allow_zero: bool
) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise DiscordBotConfigError(f"{key} must be a number")
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise DiscordBotConfigError(f"{key} must be a number") from exc
    if parsed < 0 or (parsed == 0 and not allow_zero):
        raise DiscordBotConfigError(
            f"{key} must be {'>= 0' if allow_zero else '> 0'}"
        )
    return parsed


def _parse_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return DEFAULT_TAG_CATALOG
    if not isinstance(value, (list, tuple)):
        raise DiscordBotConfigError("discord_bot.tags must be a list of strings")
    parsed: list[str] = []
    for item in value:
        token = str(item).strip()
        if not token:
            raise DiscordBotConfigError("discord_bot.tags entries must be non-empty")
        if "," in token:
            raise DiscordBotConfigError(
                f"discord_bot.tags entry {token!r} must not contain a comma"
            )
        if token not in parsed:
            parsed.append(token)
    if not parsed:
        raise DiscordBotConfigError("discord_bot.tags must not be empty")
    if len(parsed) > MAX_TAG_OPTIONS:
        raise DiscordBotConfigError(
            f"discord_bot.tags supports at most {MAX_TAG_OPTIONS} entries"
        )
    return tuple(parsed)
