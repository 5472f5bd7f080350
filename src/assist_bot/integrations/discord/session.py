from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ...core.exceptions import SessionInvariantError
from .categories import ThreadCategory
from .interactions import InteractionUser


class SessionState(str, Enum):
    IDLE = "idle"
    THREAD_OPEN = "thread_open"
    TIMED_OUT_CLOSED = "timed_out_closed"
    ACTIVE = "active"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {SessionState.TIMED_OUT_CLOSED, SessionState.ACTIVE, SessionState.FAILED}
)
_ALLOWED_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.THREAD_OPEN, SessionState.FAILED}),
    SessionState.THREAD_OPEN: frozenset(
        {
            SessionState.TIMED_OUT_CLOSED,
            SessionState.ACTIVE,
            SessionState.FAILED,
        }
    ),
}


@dataclass
class Session:
    """One run of the title workflow, owned by the task executing it."""

    category: ThreadCategory
    user: InteractionUser
    channel_id: str
    guild_id: Optional[str]
    prompt_message_id: str
    # Channel the private thread is created under; defaults to channel_id.
    thread_parent_id: Optional[str] = None
    thread_id: Optional[str] = None
    title_message_id: Optional[str] = None
    title: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    state: SessionState = SessionState.IDLE

    def transition(self, new_state: SessionState) -> None:
        allowed = _ALLOWED_TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed:
            raise SessionInvariantError(
                f"invalid session transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
