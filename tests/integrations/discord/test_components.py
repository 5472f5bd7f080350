from __future__ import annotations

from assist_bot.integrations.discord.components import (
    DISCORD_BUTTON_STYLE_LINK,
    build_category_buttons,
    build_select_menu,
    build_select_option,
    build_tags_dialog_components,
    build_thread_action_row,
)


def test_category_prompt_has_four_categories_and_faq_link() -> None:
    row = build_category_buttons("https://discord.com/channels/1000/200")

    assert row["type"] == 1
    buttons = row["components"]
    assert [button.get("custom_id") for button in buttons[:4]] == [
        "assist-help",
        "assist-question",
        "assist-bug",
        "assist-feature",
    ]
    faq = buttons[4]
    assert faq["style"] == DISCORD_BUTTON_STYLE_LINK
    assert faq["url"] == "https://discord.com/channels/1000/200"
    assert "custom_id" not in faq


def test_thread_action_row_toggles_add_tags() -> None:
    disabled = build_thread_action_row(add_tags_disabled=True)["components"]
    enabled = build_thread_action_row(add_tags_disabled=False)["components"]

    assert disabled[0]["custom_id"] == "assist-add-tags"
    assert disabled[0]["disabled"] is True
    assert enabled[0]["disabled"] is False
    assert disabled[1]["custom_id"] == "assist-close-thread"
    assert disabled[1]["disabled"] is False


def test_tags_dialog_components_preselect_current_tags() -> None:
    rows = build_tags_dialog_components(("Windows", "Linux", "macOS"), "Linux")

    menu = rows[0]["components"][0]
    assert menu["custom_id"] == "assist-tags-select"
    assert menu["min_values"] == 0
    assert menu["max_values"] == 3
    assert [option["default"] for option in menu["options"]] == [False, True, False]
    assert rows[1]["components"][0]["custom_id"] == "assist-tags-select-dismiss"


def test_select_menu_truncates_options() -> None:
    options = [build_select_option(f"tag {i}", f"tag-{i}") for i in range(30)]

    menu = build_select_menu("pick", options, min_values=0, max_values=30)

    assert len(menu["options"]) == 25
    assert menu["max_values"] == 25
