from __future__ import annotations

from typing import Any, Optional

from ...core.exceptions import SessionInvariantError
from .categories import WELCOME_COLOR, WELCOME_EMOJI, ThreadCategory
from .constants import DISCORD_FLAG_SUPPRESS_EMBEDS
from .tags import NO_TAGS_SENTINEL, TAGS_FIELD_NAME

CLOSING_CONTENT = "Closing thread..."
FAILURE_CONTENT = (
    "⚠️ Something went wrong while handling this thread. "
    "Please close it and open a new one from the help channel."
)


def inactivity_notice(timeout_seconds: float) -> str:
    minutes = max(int(round(timeout_seconds / 60)), 1)
    unit = "minute" if minutes == 1 else "minutes"
    return (
        "The thread will automatically close if there is no activity "
        f"within {minutes} {unit}."
    )


def build_embed(
    *,
    title: str,
    description: str,
    color: int,
    footer_text: Optional[str] = None,
    footer_icon_url: Optional[str] = None,
    fields: Optional[list[dict[str, Any]]] = None,
) -> dict[str, Any]:
    embed: dict[str, Any] = {
        "title": title[:256],
        "description": description[:4096],
        "color": color,
    }
    if fields:
        embed["fields"] = fields
    if footer_text:
        footer: dict[str, Any] = {"text": footer_text[:2048]}
        if footer_icon_url:
            footer["icon_url"] = footer_icon_url
        embed["footer"] = footer
    return embed


def build_welcome_embed(faq_channel_id: str) -> dict[str, Any]:
    return build_embed(
        title=f"{WELCOME_EMOJI} Welcome to Help",
        description=(
            f"Before you create a help thread, you should read <#{faq_channel_id}> first."
        ),
        color=WELCOME_COLOR,
    )


def build_title_prompt_embed(
    category: ThreadCategory, *, timeout_seconds: float
) -> dict[str, Any]:
    return build_embed(
        title="🏷️ Set the thread title",
        description=(
            f"Provide a **short description** of your {category.noun} "
            "by typing into the thread."
        ),
        color=category.color,
        footer_text=inactivity_notice(timeout_seconds),
    )


def build_tags_field(value: str) -> dict[str, Any]:
    return {"name": TAGS_FIELD_NAME, "value": value, "inline": False}


def build_summary_embed(
    category: ThreadCategory,
    *,
    title: str,
    footer_text: str,
    footer_icon_url: Optional[str],
    tags_value: str = NO_TAGS_SENTINEL,
) -> dict[str, Any]:
    return build_embed(
        title=category.title,
        description=title,
        color=category.color,
        fields=[build_tags_field(tags_value)],
        footer_text=footer_text,
        footer_icon_url=footer_icon_url,
    )


def build_tags_dialog_embed(color: int) -> dict[str, Any]:
    return build_embed(
        title="🏷️ Add thread tags",
        description=(
            "Tags help your thread get solved quicker, "
            "select a couple from the list below."
        ),
        color=color,
        footer_text="Tapping outside the selection menu will save your selections.",
    )


def opened_by_footer(username: str, discriminator: Optional[str]) -> str:
    return f"Opened by {username}#{discriminator or '0'}"


def summary_embed_of(message: dict[str, Any]) -> dict[str, Any]:
    embeds = message.get("embeds")
    if not isinstance(embeds, list) or not embeds or not isinstance(embeds[0], dict):
        raise SessionInvariantError(
            f"message {message.get('id')!r} has no summary embed"
        )
    return embeds[0]


def read_tags_field(embed: dict[str, Any]) -> str:
    fields = embed.get("fields")
    if isinstance(fields, list):
        for field in fields:
            if isinstance(field, dict) and isinstance(field.get("value"), str):
                return field["value"]
    raise SessionInvariantError("summary embed is missing its tags field")


def with_tags(embed: dict[str, Any], tags_value: str) -> dict[str, Any]:
    """Copy of the summary embed with the tags field overwritten."""
    title = embed.get("title")
    description = embed.get("description")
    if not isinstance(title, str) or not isinstance(description, str):
        raise SessionInvariantError("summary embed is missing its title or description")
    footer = embed.get("footer") if isinstance(embed.get("footer"), dict) else {}
    color = embed.get("color")
    return build_embed(
        title=title,
        description=description,
        color=color if isinstance(color, int) else WELCOME_COLOR,
        fields=[build_tags_field(tags_value)],
        footer_text=footer.get("text"),
        footer_icon_url=footer.get("icon_url"),
    )


def closing_notice_payload() -> dict[str, Any]:
    return {"content": CLOSING_CONTENT, "flags": DISCORD_FLAG_SUPPRESS_EMBEDS}


def failure_notice_payload(components: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "content": FAILURE_CONTENT,
        "flags": DISCORD_FLAG_SUPPRESS_EMBEDS,
        "components": components,
    }
