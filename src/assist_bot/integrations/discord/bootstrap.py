from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ...core.logging_utils import log_event
from .components import build_category_buttons
from .config import PROMPT_TARGET_THREAD, DiscordBotConfigError
from .constants import DISCORD_WEB_BASE_URL
from .embeds import build_welcome_embed
from .platform import DiscordThreadPlatform


@dataclass(frozen=True)
class ResolvedChannels:
    """Support and FAQ channel ids, looked up by name once per process."""

    guild_id: str
    help_channel_id: str
    faq_channel_id: str

    @property
    def faq_url(self) -> str:
        return f"{DISCORD_WEB_BASE_URL}/{self.guild_id}/{self.faq_channel_id}"


def _find_channel_id(channels: list[dict[str, Any]], name: str) -> Optional[str]:
    for channel in channels:
        if channel.get("name") == name and channel.get("id") is not None:
            return str(channel["id"])
    return None


async def resolve_channels(
    platform: DiscordThreadPlatform,
    *,
    guild_id: str,
    help_channel_name: str,
    faq_channel_name: str,
) -> ResolvedChannels:
    channels = await platform.list_guild_channels(guild_id)
    help_channel_id = _find_channel_id(channels, help_channel_name)
    if help_channel_id is None:
        raise DiscordBotConfigError(
            f"No #{help_channel_name} channel found in guild {guild_id}"
        )
    faq_channel_id = _find_channel_id(channels, faq_channel_name)
    if faq_channel_id is None:
        raise DiscordBotConfigError(
            f"No #{faq_channel_name} channel found in guild {guild_id}"
        )
    return ResolvedChannels(
        guild_id=guild_id,
        help_channel_id=help_channel_id,
        faq_channel_id=faq_channel_id,
    )


def build_category_prompt(channels: ResolvedChannels) -> dict[str, Any]:
    return {
        "embeds": [build_welcome_embed(channels.faq_channel_id)],
        "components": [build_category_buttons(channels.faq_url)],
    }


class ThreadCreatedBootstrap:
    """Posts the category-choice prompt when a thread appears under #help."""

    def __init__(
        self,
        platform: DiscordThreadPlatform,
        channels: ResolvedChannels,
        *,
        prompt_target: str,
        logger: logging.Logger,
    ) -> None:
        self._platform = platform
        self._channels = channels
        self._prompt_target = prompt_target
        self._logger = logger

    async def post_prompt(self, channel_id: Optional[str] = None) -> dict[str, Any]:
        target = channel_id or self._channels.help_channel_id
        message = await self._platform.send_message(
            target, build_category_prompt(self._channels)
        )
        log_event(
            self._logger,
            logging.INFO,
            "assist.bootstrap.prompt_posted",
            channel_id=target,
            message_id=message.get("id"),
        )
        return message

    async def handle_thread_create(
        self, thread: dict[str, Any], *, bot_user_id: Optional[str] = None
    ) -> Optional[dict[str, Any]]:
        parent_id = thread.get("parent_id")
        if parent_id is None or str(parent_id) != self._channels.help_channel_id:
            return None
        if self._prompt_target != PROMPT_TARGET_THREAD:
            return await self.post_prompt()

        thread_id = thread.get("id")
        if thread_id is None:
            return None
        if bot_user_id is not None and str(thread.get("owner_id")) == bot_user_id:
            # Threads the bot opened for a session already carry their own prompt.
            return None
        return await self.post_prompt(str(thread_id))
