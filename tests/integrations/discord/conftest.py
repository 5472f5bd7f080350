from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import pytest

from assist_bot.integrations.discord.errors import DiscordNotFoundError


class FakeDiscordRest:
    """In-memory stand-in for ``DiscordRestClient`` that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.channels: list[dict[str, Any]] = [
            {"id": "100", "name": "help", "type": 0},
            {"id": "200", "name": "faq", "type": 0},
            {"id": "300", "name": "general", "type": 0},
        ]
        self.deleted_messages: set[str] = set()
        self.deleted_channels: set[str] = set()
        self.failures: dict[str, Exception] = {}
        self._next_id = 0

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}-{self._next_id}"

    def _record(self, name: str, /, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        failure = self.failures.pop(name, None)
        if failure is not None:
            raise failure

    def calls_named(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for call, kwargs in self.calls if call == name]

    async def get_current_user(self) -> dict[str, Any]:
        self._record("get_current_user")
        return {"id": "999", "username": "assist"}

    async def list_guild_channels(self, *, guild_id: str) -> list[dict[str, Any]]:
        self._record("list_guild_channels", guild_id=guild_id)
        return list(self.channels)

    async def create_interaction_response(
        self,
        *,
        interaction_id: str,
        interaction_token: str,
        payload: dict[str, Any],
    ) -> None:
        self._record(
            "create_interaction_response",
            interaction_id=interaction_id,
            interaction_token=interaction_token,
            payload=payload,
        )

    async def create_channel_message(
        self, *, channel_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        self._record("create_channel_message", channel_id=channel_id, payload=payload)
        return {"id": self._new_id("msg"), "channel_id": channel_id, **payload}

    async def edit_channel_message(
        self, *, channel_id: str, message_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        self._record(
            "edit_channel_message",
            channel_id=channel_id,
            message_id=message_id,
            payload=payload,
        )
        if message_id in self.deleted_messages or channel_id in self.deleted_channels:
            raise DiscordNotFoundError("Unknown Message", status_code=404)
        return {"id": message_id, "channel_id": channel_id, **payload}

    async def delete_channel_message(self, *, channel_id: str, message_id: str) -> None:
        self._record(
            "delete_channel_message", channel_id=channel_id, message_id=message_id
        )
        if message_id in self.deleted_messages:
            raise DiscordNotFoundError("Unknown Message", status_code=404)
        self.deleted_messages.add(message_id)

    async def pin_message(self, *, channel_id: str, message_id: str) -> None:
        self._record("pin_message", channel_id=channel_id, message_id=message_id)

    async def create_thread(self, *, channel_id: str, name: str) -> dict[str, Any]:
        self._record("create_thread", channel_id=channel_id, name=name)
        return {"id": self._new_id("thread"), "parent_id": channel_id, "name": name}

    async def modify_channel(
        self, *, channel_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        self._record("modify_channel", channel_id=channel_id, payload=payload)
        return {"id": channel_id, **payload}

    async def delete_channel(self, *, channel_id: str) -> None:
        self._record("delete_channel", channel_id=channel_id)
        if channel_id in self.deleted_channels:
            raise DiscordNotFoundError("Unknown Channel", status_code=404)
        self.deleted_channels.add(channel_id)


@pytest.fixture
def fake_rest() -> FakeDiscordRest:
    return FakeDiscordRest()


def _component_interaction(
    custom_id: str,
    *,
    channel_id: str = "100",
    message: Optional[dict[str, Any]] = None,
    values: Optional[list[str]] = None,
    user_id: str = "42",
    username: str = "Ana",
    discriminator: str = "0001",
    interaction_id: str = "inter-1",
) -> dict[str, Any]:
    data: dict[str, Any] = {"custom_id": custom_id, "component_type": 2}
    if values is not None:
        data["component_type"] = 3
        data["values"] = values
    return {
        "id": interaction_id,
        "token": f"token-{interaction_id}",
        "type": 3,
        "channel_id": channel_id,
        "guild_id": "1000",
        "data": data,
        "message": message
        if message is not None
        else {"id": "prompt-1", "channel_id": channel_id},
        "member": {
            "user": {
                "id": user_id,
                "username": username,
                "discriminator": discriminator,
                "avatar": None,
            }
        },
    }


@pytest.fixture
def make_interaction() -> Callable[..., dict[str, Any]]:
    """Factory for gateway ``INTERACTION_CREATE`` payloads of component presses."""
    return _component_interaction


async def _wait_until(
    condition: Callable[[], bool], *, timeout: float = 2.0
) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() >= deadline:
            raise AssertionError("condition was not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def wait_until() -> Callable[..., Any]:
    return _wait_until
