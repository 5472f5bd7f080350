from __future__ import annotations

import pytest

from assist_bot.core.exceptions import SessionInvariantError
from assist_bot.integrations.discord.categories import ThreadCategory
from assist_bot.integrations.discord.embeds import (
    build_summary_embed,
    build_title_prompt_embed,
    closing_notice_payload,
    inactivity_notice,
    opened_by_footer,
    read_tags_field,
    summary_embed_of,
    with_tags,
)


def test_summary_embed_matches_bug_scenario() -> None:
    embed = build_summary_embed(
        ThreadCategory.BUG,
        title="Crashes on launch",
        footer_text=opened_by_footer("Ana", "0001"),
        footer_icon_url="https://cdn.example/avatar.png",
    )

    assert embed["title"] == "🐞 Bug"
    assert embed["description"] == "Crashes on launch"
    assert embed["fields"][0]["value"] == "*<no tags>*"
    assert embed["footer"] == {
        "text": "Opened by Ana#0001",
        "icon_url": "https://cdn.example/avatar.png",
    }


def test_title_prompt_mentions_noun_and_policy() -> None:
    embed = build_title_prompt_embed(ThreadCategory.FEATURE, timeout_seconds=600)

    assert "feature suggestion" in embed["description"]
    assert embed["footer"]["text"].endswith("within 10 minutes.")


def test_inactivity_notice_singular() -> None:
    assert inactivity_notice(30).endswith("within 1 minute.")


def test_with_tags_overwrites_field_and_preserves_the_rest() -> None:
    embed = build_summary_embed(
        ThreadCategory.QUESTION,
        title="How do I sync?",
        footer_text="Opened by Bob#0",
        footer_icon_url=None,
        tags_value="Linux",
    )

    updated = with_tags(embed, "Windows")

    assert read_tags_field(updated) == "Windows"
    assert updated["title"] == embed["title"]
    assert updated["description"] == embed["description"]
    assert updated["color"] == embed["color"]
    assert updated["footer"] == embed["footer"]


def test_missing_summary_embed_is_an_invariant_error() -> None:
    with pytest.raises(SessionInvariantError):
        summary_embed_of({"id": "1", "embeds": []})
    with pytest.raises(SessionInvariantError):
        read_tags_field({"title": "x", "description": "y"})


def test_closing_notice_suppresses_embeds() -> None:
    payload = closing_notice_payload()

    assert payload["content"] == "Closing thread..."
    assert payload["flags"] == 4
