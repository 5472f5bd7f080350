from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ...core.exceptions import SessionInvariantError
from .constants import DISCORD_INTERACTION_TYPE_COMPONENT

DISCORD_CDN_BASE_URL = "https://cdn.discordapp.com"


def _as_id(value: object) -> str | None:
    if value is None:
        return None
    token = str(value).strip()
    return token or None


@dataclass(frozen=True)
class InteractionUser:
    """The member who pressed a button, as needed by the workflows."""

    user_id: str
    username: str
    discriminator: Optional[str]
    display_name: str
    avatar_url: str


def extract_interaction_id(interaction_payload: dict[str, Any]) -> Optional[str]:
    return _as_id(interaction_payload.get("id"))


def extract_interaction_token(interaction_payload: dict[str, Any]) -> Optional[str]:
    return _as_id(interaction_payload.get("token"))


def extract_channel_id(interaction_payload: dict[str, Any]) -> Optional[str]:
    return _as_id(interaction_payload.get("channel_id"))


def extract_guild_id(interaction_payload: dict[str, Any]) -> Optional[str]:
    return _as_id(interaction_payload.get("guild_id"))


def is_component_interaction(interaction_payload: dict[str, Any]) -> bool:
    interaction_type = interaction_payload.get("type")
    return interaction_type == DISCORD_INTERACTION_TYPE_COMPONENT


def extract_component_custom_id(interaction_payload: dict[str, Any]) -> Optional[str]:
    data = interaction_payload.get("data")
    if not isinstance(data, dict):
        return None
    return _as_id(data.get("custom_id"))


def extract_component_values(interaction_payload: dict[str, Any]) -> list[str]:
    data = interaction_payload.get("data")
    if not isinstance(data, dict):
        return []
    values = data.get("values")
    if not isinstance(values, list):
        return []
    return [str(v) for v in values if isinstance(v, (str, int, float))]


def extract_message(interaction_payload: dict[str, Any]) -> Optional[dict[str, Any]]:
    message = interaction_payload.get("message")
    if not isinstance(message, dict) or _as_id(message.get("id")) is None:
        return None
    return message


def extract_message_id(interaction_payload: dict[str, Any]) -> Optional[str]:
    message = extract_message(interaction_payload)
    return _as_id(message.get("id")) if message is not None else None


def user_avatar_url(user: dict[str, Any]) -> str:
    user_id = _as_id(user.get("id")) or "0"
    avatar = user.get("avatar")
    if isinstance(avatar, str) and avatar:
        extension = "gif" if avatar.startswith("a_") else "webp"
        return f"{DISCORD_CDN_BASE_URL}/avatars/{user_id}/{avatar}.{extension}?size=1024"
    discriminator = str(user.get("discriminator") or "0")
    if discriminator == "0" and user_id.isdigit():
        index = (int(user_id) >> 22) % 6
    else:
        index = int(discriminator) % 5 if discriminator.isdigit() else 0
    return f"{DISCORD_CDN_BASE_URL}/embed/avatars/{index}.png"


def extract_interaction_user(
    interaction_payload: dict[str, Any],
) -> Optional[InteractionUser]:
    member = interaction_payload.get("member")
    member_dict = member if isinstance(member, dict) else {}
    user = member_dict.get("user")
    if not isinstance(user, dict):
        user = interaction_payload.get("user")
    if not isinstance(user, dict):
        return None
    user_id = _as_id(user.get("id"))
    username = _as_id(user.get("username"))
    if user_id is None or username is None:
        return None
    display_name = (
        _as_id(member_dict.get("nick")) or _as_id(user.get("global_name")) or username
    )
    return InteractionUser(
        user_id=user_id,
        username=username,
        discriminator=_as_id(user.get("discriminator")),
        display_name=display_name,
        avatar_url=user_avatar_url(user),
    )


@dataclass(frozen=True)
class ComponentInteraction:
    """A validated button or select-menu interaction."""

    interaction_id: str
    interaction_token: str
    channel_id: str
    guild_id: Optional[str]
    custom_id: str
    values: tuple[str, ...]
    message: dict[str, Any]
    user: InteractionUser

    @property
    def message_id(self) -> str:
        return str(self.message["id"])

    @classmethod
    def from_payload(cls, interaction_payload: dict[str, Any]) -> "ComponentInteraction":
        interaction_id = extract_interaction_id(interaction_payload)
        interaction_token = extract_interaction_token(interaction_payload)
        channel_id = extract_channel_id(interaction_payload)
        custom_id = extract_component_custom_id(interaction_payload)
        message = extract_message(interaction_payload)
        user = extract_interaction_user(interaction_payload)
        if (
            interaction_id is None
            or interaction_token is None
            or channel_id is None
            or custom_id is None
            or message is None
            or user is None
        ):
            missing = [
                name
                for name, value in (
                    ("id", interaction_id),
                    ("token", interaction_token),
                    ("channel_id", channel_id),
                    ("custom_id", custom_id),
                    ("message", message),
                    ("member.user", user),
                )
                if value is None
            ]
            raise SessionInvariantError(
                f"component interaction is missing {', '.join(missing)}"
            )
        return cls(
            interaction_id=interaction_id,
            interaction_token=interaction_token,
            channel_id=channel_id,
            guild_id=extract_guild_id(interaction_payload),
            custom_id=custom_id,
            values=tuple(extract_component_values(interaction_payload)),
            message=message,
            user=user,
        )
