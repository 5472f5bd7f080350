from __future__ import annotations

import pytest

from assist_bot.core.exceptions import SessionInvariantError
from assist_bot.integrations.discord.interactions import (
    ComponentInteraction,
    extract_interaction_user,
    user_avatar_url,
)


def test_component_interaction_from_payload(make_interaction) -> None:
    payload = make_interaction(
        "assist-tags-select",
        channel_id="thread-1",
        message={"id": "dialog-1"},
        values=["Windows", "Linux"],
    )

    interaction = ComponentInteraction.from_payload(payload)

    assert interaction.custom_id == "assist-tags-select"
    assert interaction.channel_id == "thread-1"
    assert interaction.message_id == "dialog-1"
    assert interaction.values == ("Windows", "Linux")
    assert interaction.user.username == "Ana"
    assert interaction.user.discriminator == "0001"


def test_missing_message_is_invariant_error(make_interaction) -> None:
    payload = make_interaction("assist-bug")
    payload.pop("message")

    with pytest.raises(SessionInvariantError, match="message"):
        ComponentInteraction.from_payload(payload)


def test_display_name_prefers_nick_then_global_name(make_interaction) -> None:
    payload = make_interaction("assist-help")
    payload["member"]["user"]["global_name"] = "Ana B"
    assert extract_interaction_user(payload).display_name == "Ana B"

    payload["member"]["nick"] = "Annie"
    assert extract_interaction_user(payload).display_name == "Annie"


def test_avatar_urls() -> None:
    assert user_avatar_url({"id": "42", "avatar": "abc"}).startswith(
        "https://cdn.discordapp.com/avatars/42/abc.webp"
    )
    assert user_avatar_url({"id": "42", "avatar": None, "discriminator": "0001"}) == (
        "https://cdn.discordapp.com/embed/avatars/1.png"
    )
