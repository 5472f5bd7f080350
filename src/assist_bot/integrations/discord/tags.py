"""Tag set handling for the summary embed of an active thread.

The tag field is stored only in the summary embed: a comma-separated list of
catalog entries, or ``NO_TAGS_SENTINEL`` when empty. Each update overwrites
the field completely.
"""

from __future__ import annotations

from typing import Iterable, Sequence

NO_TAGS_SENTINEL = "*<no tags>*"
TAG_SEPARATOR = ", "
TAGS_FIELD_NAME = "🏷️ Tags"
MAX_TAG_OPTIONS = 25

DEFAULT_TAG_CATALOG: tuple[str, ...] = (
    "Windows",
    "Linux",
    "macOS",
    "BSD",
    "Unix-like",
    "Product: Dot Browser for Desktop",
    "Product: Dot Browser for Android",
    "Product: Dot One",
    "Product: Dot Shield",
    "Product: Other",
)


def parse_tags(value: str | None) -> list[str]:
    if value is None:
        return []
    text = value.strip()
    if not text or text == NO_TAGS_SENTINEL:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def format_tags(values: Sequence[str]) -> str:
    """Render tags in the given order; an empty selection renders the sentinel."""
    if not values:
        return NO_TAGS_SENTINEL
    return TAG_SEPARATOR.join(values)


def preselected_tags(current_value: str | None) -> list[str]:
    """Tags to mark as default in the selection menu, sorted case-insensitively."""
    return sorted(parse_tags(current_value), key=str.lower)


def catalog_selection(
    catalog: Iterable[str], current_value: str | None
) -> list[tuple[str, bool]]:
    selected = set(preselected_tags(current_value))
    return [(tag, tag in selected) for tag in catalog]
