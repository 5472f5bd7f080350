from __future__ import annotations

from typing import Any, Iterable, Optional

from .actions import (
    ADD_TAGS,
    CLOSE_THREAD,
    TAGS_SELECT,
    TAGS_SELECT_DISMISS,
    category_action,
)
from .categories import ThreadCategory
from .tags import catalog_selection

DISCORD_BUTTON_STYLE_SECONDARY = 2
DISCORD_BUTTON_STYLE_LINK = 5
DISCORD_SELECT_OPTION_MAX_OPTIONS = 25


def build_action_row(components: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "type": 1,
        "components": components,
    }


def build_button(
    label: str,
    custom_id: str,
    *,
    style: int = DISCORD_BUTTON_STYLE_SECONDARY,
    emoji: Optional[str] = None,
    disabled: bool = False,
) -> dict[str, Any]:
    button: dict[str, Any] = {
        "type": 2,
        "style": style,
        "label": label,
        "custom_id": custom_id,
        "disabled": disabled,
    }
    if emoji:
        button["emoji"] = {"name": emoji}
    return button


def build_link_button(
    label: str, url: str, *, emoji: Optional[str] = None
) -> dict[str, Any]:
    # Link buttons carry a url instead of a custom_id and never produce interactions.
    button: dict[str, Any] = {
        "type": 2,
        "style": DISCORD_BUTTON_STYLE_LINK,
        "label": label,
        "url": url,
    }
    if emoji:
        button["emoji"] = {"name": emoji}
    return button


def build_select_menu(
    custom_id: str,
    options: list[dict[str, Any]],
    *,
    placeholder: Optional[str] = None,
    min_values: int = 1,
    max_values: int = 1,
    disabled: bool = False,
) -> dict[str, Any]:
    select: dict[str, Any] = {
        "type": 3,
        "custom_id": custom_id,
        "options": options[:DISCORD_SELECT_OPTION_MAX_OPTIONS],
        "min_values": min_values,
        "max_values": min(max_values, DISCORD_SELECT_OPTION_MAX_OPTIONS),
        "disabled": disabled,
    }
    if placeholder:
        select["placeholder"] = placeholder[:150]
    return select


def build_select_option(
    label: str,
    value: str,
    *,
    description: Optional[str] = None,
    emoji: Optional[str] = None,
    default: bool = False,
) -> dict[str, Any]:
    option: dict[str, Any] = {
        "label": label[:100],
        "value": value[:100],
        "default": default,
    }
    if description:
        option["description"] = description[:100]
    if emoji:
        option["emoji"] = {"name": emoji}
    return option


def build_category_buttons(faq_url: str) -> dict[str, Any]:
    buttons = [
        build_button(
            category.button_label,
            category_action(category).custom_id,
            style=DISCORD_BUTTON_STYLE_SECONDARY,
            emoji=category.emoji,
        )
        for category in ThreadCategory
    ]
    buttons.append(build_link_button("FAQ", faq_url))
    return build_action_row(buttons)


def build_thread_action_row(*, add_tags_disabled: bool) -> dict[str, Any]:
    return build_action_row(
        [
            build_button(
                "Add tags",
                ADD_TAGS.custom_id,
                style=DISCORD_BUTTON_STYLE_SECONDARY,
                disabled=add_tags_disabled,
            ),
            build_button(
                "Close thread",
                CLOSE_THREAD.custom_id,
                style=DISCORD_BUTTON_STYLE_SECONDARY,
            ),
        ]
    )


def build_tags_dialog_components(
    catalog: Iterable[str], current_value: Optional[str]
) -> list[dict[str, Any]]:
    selection = catalog_selection(catalog, current_value)
    options = [
        build_select_option(tag, tag, default=selected) for tag, selected in selection
    ]
    menu = build_select_menu(
        TAGS_SELECT.custom_id,
        options,
        placeholder="No tags selected",
        min_values=0,
        max_values=len(options),
    )
    dismiss = build_button(
        "Dismiss",
        TAGS_SELECT_DISMISS.custom_id,
        style=DISCORD_BUTTON_STYLE_SECONDARY,
    )
    return [build_action_row([menu]), build_action_row([dismiss])]
