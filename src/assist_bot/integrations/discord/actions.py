"""Closed set of component actions understood by the bot.

Custom ids are namespaced (``assist-bug``, ``assist-close-thread``) and are
parsed into an ``AssistAction``; anything else maps to ``None`` and is
ignored by the service.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .categories import ThreadCategory
from .constants import ACTION_NAMESPACE


class ActionKind(str, Enum):
    CATEGORY = "category"
    CLOSE_THREAD = "close-thread"
    ADD_TAGS = "add-tags"
    TAGS_SELECT = "tags-select"
    TAGS_SELECT_DISMISS = "tags-select-dismiss"


@dataclass(frozen=True)
class AssistAction:
    kind: ActionKind
    category: Optional[ThreadCategory] = None

    @property
    def custom_id(self) -> str:
        if self.kind is ActionKind.CATEGORY and self.category is not None:
            return f"{ACTION_NAMESPACE}{self.category.value}"
        return f"{ACTION_NAMESPACE}{self.kind.value}"


CLOSE_THREAD = AssistAction(ActionKind.CLOSE_THREAD)
ADD_TAGS = AssistAction(ActionKind.ADD_TAGS)
TAGS_SELECT = AssistAction(ActionKind.TAGS_SELECT)
TAGS_SELECT_DISMISS = AssistAction(ActionKind.TAGS_SELECT_DISMISS)


def category_action(category: ThreadCategory) -> AssistAction:
    return AssistAction(ActionKind.CATEGORY, category)


_ACTIONS_BY_SUFFIX: dict[str, AssistAction] = {
    **{category.value: category_action(category) for category in ThreadCategory},
    **{
        action.kind.value: action
        for action in (CLOSE_THREAD, ADD_TAGS, TAGS_SELECT, TAGS_SELECT_DISMISS)
    },
}


def parse_action(custom_id: Optional[str]) -> Optional[AssistAction]:
    """Exact-match lookup; ids outside the namespace return ``None``."""
    if not custom_id or not custom_id.startswith(ACTION_NAMESPACE):
        return None
    return _ACTIONS_BY_SUFFIX.get(custom_id[len(ACTION_NAMESPACE) :])
