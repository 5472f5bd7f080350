from __future__ import annotations

from typing import Any, Optional, Protocol

from ...core.retry import retry_transient
from .constants import (
    DISCORD_FLAG_EPHEMERAL,
    DISCORD_RESPONSE_CHANNEL_MESSAGE,
    DISCORD_RESPONSE_DEFERRED_UPDATE,
)
from .errors import DiscordNotFoundError


class DiscordRestApi(Protocol):
    async def list_guild_channels(self, *, guild_id: str) -> list[dict[str, Any]]: ...

    async def create_interaction_response(
        self, *, interaction_id: str, interaction_token: str, payload: dict[str, Any]
    ) -> None: ...

    async def create_channel_message(
        self, *, channel_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def edit_channel_message(
        self, *, channel_id: str, message_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def delete_channel_message(
        self, *, channel_id: str, message_id: str
    ) -> None: ...

    async def pin_message(self, *, channel_id: str, message_id: str) -> None: ...

    async def create_thread(self, *, channel_id: str, name: str) -> dict[str, Any]: ...

    async def modify_channel(
        self, *, channel_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def delete_channel(self, *, channel_id: str) -> None: ...


class DiscordThreadPlatform:
    """Platform operations used by the support-thread workflows.

    Idempotent calls (edits, deletes, renames, pins) are retried on transient
    failures. Creates and interaction callbacks are attempted once: repeating
    them could duplicate a thread or reuse a spent interaction token.
    """

    def __init__(self, rest: DiscordRestApi) -> None:
        self._rest = rest

    @retry_transient()
    async def list_guild_channels(self, guild_id: str) -> list[dict[str, Any]]:
        return await self._rest.list_guild_channels(guild_id=guild_id)

    async def send_message(
        self, channel_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._rest.create_channel_message(
            channel_id=channel_id, payload=payload
        )

    @retry_transient()
    async def edit_message(
        self, channel_id: str, message_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._rest.edit_channel_message(
            channel_id=channel_id, message_id=message_id, payload=payload
        )

    @retry_transient()
    async def delete_message(
        self, channel_id: str, message_id: str, *, missing_ok: bool = False
    ) -> bool:
        try:
            await self._rest.delete_channel_message(
                channel_id=channel_id, message_id=message_id
            )
        except DiscordNotFoundError:
            if not missing_ok:
                raise
            return False
        return True

    @retry_transient()
    async def pin_message(self, channel_id: str, message_id: str) -> None:
        await self._rest.pin_message(channel_id=channel_id, message_id=message_id)

    async def create_private_thread(self, channel_id: str, name: str) -> dict[str, Any]:
        return await self._rest.create_thread(channel_id=channel_id, name=name)

    @retry_transient()
    async def rename_thread(self, thread_id: str, name: str) -> dict[str, Any]:
        return await self._rest.modify_channel(
            channel_id=thread_id, payload={"name": name[:100]}
        )

    @retry_transient()
    async def delete_channel(self, channel_id: str, *, missing_ok: bool = False) -> bool:
        try:
            await self._rest.delete_channel(channel_id=channel_id)
        except DiscordNotFoundError:
            if not missing_ok:
                raise
            return False
        return True

    async def acknowledge(self, interaction_id: str, interaction_token: str) -> None:
        await self._rest.create_interaction_response(
            interaction_id=interaction_id,
            interaction_token=interaction_token,
            payload={"type": DISCORD_RESPONSE_DEFERRED_UPDATE},
        )

    async def respond_ephemeral(
        self,
        interaction_id: str,
        interaction_token: str,
        content: str,
        *,
        components: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        data: dict[str, Any] = {"content": content, "flags": DISCORD_FLAG_EPHEMERAL}
        if components is not None:
            data["components"] = components
        await self._rest.create_interaction_response(
            interaction_id=interaction_id,
            interaction_token=interaction_token,
            payload={"type": DISCORD_RESPONSE_CHANNEL_MESSAGE, "data": data},
        )
