from __future__ import annotations

from enum import Enum


class ThreadCategory(str, Enum):
    HELP = "help"
    QUESTION = "question"
    BUG = "bug"
    FEATURE = "feature"

    @property
    def emoji(self) -> str:
        return _EMOJIS[self]

    @property
    def color(self) -> int:
        return _COLORS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def button_label(self) -> str:
        return _BUTTON_LABELS[self]

    @property
    def noun(self) -> str:
        """Noun phrase used when asking for the thread title."""
        if self is ThreadCategory.QUESTION:
            return "question"
        if self is ThreadCategory.FEATURE:
            return "feature suggestion"
        return "problem"

    @property
    def title(self) -> str:
        return f"{self.emoji} {self.label}"


def rgb(red: int, green: int, blue: int) -> int:
    return (red << 16) | (green << 8) | blue


_EMOJIS = {
    ThreadCategory.HELP: "🤝",
    ThreadCategory.QUESTION: "🙋",
    ThreadCategory.BUG: "🐞",
    ThreadCategory.FEATURE: "💡",
}
_COLORS = {
    ThreadCategory.HELP: rgb(255, 213, 97),
    ThreadCategory.QUESTION: rgb(253, 103, 63),
    ThreadCategory.BUG: rgb(220, 40, 63),
    ThreadCategory.FEATURE: rgb(254, 194, 83),
}
_LABELS = {
    ThreadCategory.HELP: "Help",
    ThreadCategory.QUESTION: "Question",
    ThreadCategory.BUG: "Bug",
    ThreadCategory.FEATURE: "Feature",
}
_BUTTON_LABELS = {
    ThreadCategory.HELP: "I need help",
    ThreadCategory.QUESTION: "I have a question",
    ThreadCategory.BUG: "I've found a bug or problem",
    ThreadCategory.FEATURE: "I have a feature suggestion",
}

WELCOME_COLOR = _COLORS[ThreadCategory.HELP]
WELCOME_EMOJI = _EMOJIS[ThreadCategory.HELP]


def possessive(name: str) -> str:
    """English possessive: ``James`` -> ``James'``, ``Bob`` -> ``Bob's``."""
    if name[-1:].lower() == "s":
        return f"{name}'"
    return f"{name}'s"


def placeholder_thread_name(category: ThreadCategory, display_name: str) -> str:
    return f"{category.emoji} {possessive(display_name)} thread"


def titled_thread_name(category: ThreadCategory, title: str) -> str:
    return f"{category.emoji} {title}"
