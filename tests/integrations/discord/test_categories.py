from __future__ import annotations

import pytest

from assist_bot.integrations.discord.categories import (
    ThreadCategory,
    placeholder_thread_name,
    possessive,
    titled_thread_name,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Bob", "Bob's"),
        ("James", "James'"),
        ("CHRIS", "CHRIS'"),
        ("Ana", "Ana's"),
    ],
)
def test_possessive_suffix(name: str, expected: str) -> None:
    assert possessive(name) == expected


def test_placeholder_thread_name_uses_category_emoji() -> None:
    assert placeholder_thread_name(ThreadCategory.HELP, "Bob") == "🤝 Bob's thread"
    assert placeholder_thread_name(ThreadCategory.HELP, "James") == "🤝 James' thread"
    assert placeholder_thread_name(ThreadCategory.BUG, "Ana") == "🐞 Ana's thread"


def test_titled_thread_name() -> None:
    assert (
        titled_thread_name(ThreadCategory.BUG, "Crashes on launch")
        == "🐞 Crashes on launch"
    )


def test_category_nouns_and_titles() -> None:
    assert ThreadCategory.HELP.noun == "problem"
    assert ThreadCategory.BUG.noun == "problem"
    assert ThreadCategory.QUESTION.noun == "question"
    assert ThreadCategory.FEATURE.noun == "feature suggestion"
    assert ThreadCategory.BUG.title == "🐞 Bug"
    assert ThreadCategory.FEATURE.title == "💡 Feature"
