"""Support-thread workflows: title acquisition, tag dialog and closing.

Each workflow runs inside its own task and talks to Discord only through
``DiscordThreadPlatform``. Waiting for user input goes through collectors
registered on the shared ``EventCollectorHub``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from ...core.exceptions import SessionInvariantError
from ...core.logging_utils import log_event
from .actions import TAGS_SELECT
from .categories import placeholder_thread_name, titled_thread_name
from .collector import EventCollectorHub, EventPredicate
from .components import build_tags_dialog_components, build_thread_action_row
from .embeds import (
    build_summary_embed,
    build_tags_dialog_embed,
    build_title_prompt_embed,
    closing_notice_payload,
    failure_notice_payload,
    opened_by_footer,
    read_tags_field,
    summary_embed_of,
    with_tags,
)
from .errors import DiscordError, DiscordNotFoundError
from .interactions import (
    ComponentInteraction,
    extract_component_custom_id,
    extract_message_id,
    is_component_interaction,
)
from .platform import DiscordThreadPlatform
from .session import Session, SessionState
from .tags import format_tags, parse_tags

MESSAGE_CREATE = "MESSAGE_CREATE"
INTERACTION_CREATE = "INTERACTION_CREATE"
TAGS_UPDATED_CONTENT = "Updated tags."
TAGS_FAILED_CONTENT = "⚠️ Could not update the tags. Press \"Add tags\" to try again."

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class WorkflowSettings:
    title_timeout_seconds: float
    close_delay_seconds: float
    tags: tuple[str, ...]


def title_message_predicate(*, user_id: str, thread_id: str) -> EventPredicate:
    def _matches(payload: dict[str, Any]) -> bool:
        author = payload.get("author")
        if not isinstance(author, dict) or author.get("bot"):
            return False
        content = payload.get("content")
        return (
            str(author.get("id")) == user_id
            and str(payload.get("channel_id")) == thread_id
            and isinstance(content, str)
            and bool(content.strip())
        )

    return _matches


def tag_selection_predicate(
    *, thread_id: str, dialog_message_id: Callable[[], Optional[str]]
) -> EventPredicate:
    """Match selections in ``thread_id``, narrowed to the dialog once it is posted."""

    def _matches(payload: dict[str, Any]) -> bool:
        if not (
            is_component_interaction(payload)
            and extract_component_custom_id(payload) == TAGS_SELECT.custom_id
            and str(payload.get("channel_id")) == thread_id
        ):
            return False
        expected = dialog_message_id()
        return expected is None or extract_message_id(payload) == expected

    return _matches


async def close_thread(
    platform: DiscordThreadPlatform,
    *,
    thread_id: str,
    message_id: str,
    close_delay_seconds: float,
    sleep: Sleep = asyncio.sleep,
) -> bool:
    """Show the closing notice, give it a moment to render, then delete the thread.

    Returns ``False`` when the thread had already been deleted.
    """
    try:
        await platform.edit_message(thread_id, message_id, closing_notice_payload())
    except DiscordNotFoundError:
        return False
    await sleep(close_delay_seconds)
    return await platform.delete_channel(thread_id, missing_ok=True)


class TitleWorkflow:
    """Provision a private thread and wait for the user to title it."""

    def __init__(
        self,
        platform: DiscordThreadPlatform,
        hub: EventCollectorHub,
        settings: WorkflowSettings,
        *,
        logger: logging.Logger,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._platform = platform
        self._hub = hub
        self._settings = settings
        self._logger = logger
        self._sleep = sleep

    async def run(self, session: Session) -> SessionState:
        try:
            await self._run(session)
        except (DiscordError, SessionInvariantError) as exc:
            if not session.state.is_terminal:
                session.transition(SessionState.FAILED)
            log_event(
                self._logger,
                logging.ERROR,
                "assist.session.failed",
                category=session.category.value,
                user_id=session.user.user_id,
                thread_id=session.thread_id,
                exc=exc,
            )
            await self._report_failure(session)
        return session.state

    async def _run(self, session: Session) -> None:
        category = session.category
        thread = await self._platform.create_private_thread(
            session.thread_parent_id or session.channel_id,
            placeholder_thread_name(category, session.user.display_name),
        )
        thread_id = thread.get("id")
        if not thread_id:
            raise SessionInvariantError("thread creation returned no thread id")
        session.thread_id = str(thread_id)
        session.transition(SessionState.THREAD_OPEN)
        log_event(
            self._logger,
            logging.INFO,
            "assist.session.thread_created",
            category=category.value,
            user_id=session.user.user_id,
            channel_id=session.channel_id,
            thread_id=session.thread_id,
        )

        # Registered before the prompt exists so an early reply is not lost.
        async with self._hub.collect(
            MESSAGE_CREATE,
            title_message_predicate(
                user_id=session.user.user_id, thread_id=session.thread_id
            ),
            limit=1,
            timeout=self._settings.title_timeout_seconds,
        ) as collector:
            deleted = await self._platform.delete_message(
                session.channel_id, session.prompt_message_id, missing_ok=True
            )
            if not deleted:
                log_event(
                    self._logger,
                    logging.INFO,
                    "assist.session.prompt_already_deleted",
                    channel_id=session.channel_id,
                    message_id=session.prompt_message_id,
                )

            title_message = await self._platform.send_message(
                session.thread_id,
                {
                    "content": f"<@{session.user.user_id}>",
                    "embeds": [
                        build_title_prompt_embed(
                            category,
                            timeout_seconds=self._settings.title_timeout_seconds,
                        )
                    ],
                    "components": [build_thread_action_row(add_tags_disabled=True)],
                },
            )
            title_message_id = title_message.get("id")
            if not title_message_id:
                raise SessionInvariantError("title prompt message has no id")
            session.title_message_id = str(title_message_id)
            await self._platform.pin_message(
                session.thread_id, session.title_message_id
            )

            collected = await collector.first()

        if collected is None:
            await self._close_after_timeout(session)
            return
        await self._activate(session, str(collected.payload.get("content", "")).strip())

    def _provisioned_ids(self, session: Session) -> tuple[str, str]:
        if session.thread_id is None or session.title_message_id is None:
            raise SessionInvariantError(
                f"session in state {session.state.value} has no thread or prompt"
            )
        return session.thread_id, session.title_message_id

    async def _close_after_timeout(self, session: Session) -> None:
        thread_id, title_message_id = self._provisioned_ids(session)
        deleted = await close_thread(
            self._platform,
            thread_id=thread_id,
            message_id=title_message_id,
            close_delay_seconds=self._settings.close_delay_seconds,
            sleep=self._sleep,
        )
        session.transition(SessionState.TIMED_OUT_CLOSED)
        log_event(
            self._logger,
            logging.INFO,
            "assist.session.timed_out",
            thread_id=session.thread_id,
            user_id=session.user.user_id,
            already_closed=not deleted,
        )

    async def _activate(self, session: Session, title: str) -> None:
        thread_id, title_message_id = self._provisioned_ids(session)
        category = session.category
        session.title = title
        await self._platform.rename_thread(
            thread_id, titled_thread_name(category, title)
        )
        summary = build_summary_embed(
            category,
            title=title,
            footer_text=opened_by_footer(
                session.user.username, session.user.discriminator
            ),
            footer_icon_url=session.user.avatar_url,
            tags_value=format_tags(session.tags),
        )
        await self._platform.edit_message(
            thread_id,
            title_message_id,
            {
                "content": "",
                "embeds": [summary],
                "components": [build_thread_action_row(add_tags_disabled=False)],
            },
        )
        session.transition(SessionState.ACTIVE)
        log_event(
            self._logger,
            logging.INFO,
            "assist.session.active",
            thread_id=session.thread_id,
            user_id=session.user.user_id,
            category=category.value,
        )

    async def _report_failure(self, session: Session) -> None:
        if session.thread_id is None:
            return
        payload = failure_notice_payload(
            [build_thread_action_row(add_tags_disabled=True)]
        )
        try:
            if session.title_message_id is not None:
                await self._platform.edit_message(
                    session.thread_id, session.title_message_id, payload
                )
            else:
                await self._platform.send_message(session.thread_id, payload)
        except DiscordError as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "assist.session.failure_notice_failed",
                thread_id=session.thread_id,
                exc=exc,
            )


@dataclass
class TagDialogHandle:
    thread_id: str
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    message_id: Optional[str] = None


class TagDialogRegistry:
    """At most one open tag dialog per thread, each with its own cancel event."""

    def __init__(self) -> None:
        self._open: dict[str, TagDialogHandle] = {}

    def is_open(self, thread_id: str) -> bool:
        return thread_id in self._open

    def open(self, thread_id: str) -> Optional[TagDialogHandle]:
        if thread_id in self._open:
            return None
        handle = TagDialogHandle(thread_id=thread_id)
        self._open[thread_id] = handle
        return handle

    def find_by_message(self, message_id: str) -> Optional[TagDialogHandle]:
        for handle in self._open.values():
            if handle.message_id == message_id:
                return handle
        return None

    def cancel(self, thread_id: str) -> bool:
        handle = self._open.get(thread_id)
        if handle is None:
            return False
        handle.cancel_event.set()
        return True

    def release(self, handle: TagDialogHandle) -> None:
        if self._open.get(handle.thread_id) is handle:
            del self._open[handle.thread_id]


class TagDialog:
    """Let the user overwrite the tag set shown on an active thread's summary."""

    def __init__(
        self,
        platform: DiscordThreadPlatform,
        hub: EventCollectorHub,
        registry: TagDialogRegistry,
        settings: WorkflowSettings,
        *,
        logger: logging.Logger,
    ) -> None:
        self._platform = platform
        self._hub = hub
        self._registry = registry
        self._settings = settings
        self._logger = logger

    async def run(
        self, trigger: ComponentInteraction, handle: TagDialogHandle
    ) -> Optional[str]:
        """Returns the new tag value, or ``None`` if the dialog did not update tags.

        Dismissal, cancellation and failures all end in ``None``; a failure also
        leaves a notice in the thread.
        """
        try:
            return await self._run(trigger, handle)
        except (DiscordError, SessionInvariantError) as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "assist.tags.failed",
                thread_id=trigger.channel_id,
                dialog_message_id=handle.message_id,
                exc=exc,
            )
            await self._report_failure(trigger.channel_id, handle)
            return None
        finally:
            self._registry.release(handle)

    async def _run(
        self, trigger: ComponentInteraction, handle: TagDialogHandle
    ) -> Optional[str]:
        thread_id = trigger.channel_id
        summary_message_id = trigger.message_id
        summary = summary_embed_of(trigger.message)
        current_value = read_tags_field(summary)
        color = summary.get("color")

        # Registered before the dialog is posted; narrowed to its message once
        # the id is known.
        async with self._hub.collect(
            INTERACTION_CREATE,
            tag_selection_predicate(
                thread_id=thread_id, dialog_message_id=lambda: handle.message_id
            ),
            limit=1,
            cancel_event=handle.cancel_event,
        ) as collector:
            dialog_message = await self._platform.send_message(
                thread_id,
                {
                    "embeds": [
                        build_tags_dialog_embed(color if isinstance(color, int) else 0)
                    ],
                    "components": build_tags_dialog_components(
                        self._settings.tags, current_value
                    ),
                },
            )
            raw_dialog_id = dialog_message.get("id")
            if not raw_dialog_id:
                raise SessionInvariantError("tag dialog message has no id")
            dialog_message_id = str(raw_dialog_id)
            handle.message_id = dialog_message_id
            log_event(
                self._logger,
                logging.INFO,
                "assist.tags.dialog_opened",
                thread_id=thread_id,
                dialog_message_id=dialog_message_id,
                current=parse_tags(current_value),
            )

            event = await collector.first()

        if event is None:
            log_event(
                self._logger,
                logging.INFO,
                "assist.tags.dismissed",
                thread_id=thread_id,
                dialog_message_id=dialog_message_id,
            )
            return None

        selection = ComponentInteraction.from_payload(event.payload)
        await self._platform.respond_ephemeral(
            selection.interaction_id,
            selection.interaction_token,
            TAGS_UPDATED_CONTENT,
        )
        new_value = format_tags(selection.values)
        # The dialog is single-use: once its message is gone it cannot produce
        # another selection.
        await self._platform.delete_message(
            thread_id, dialog_message_id, missing_ok=True
        )
        await self._platform.edit_message(
            thread_id,
            summary_message_id,
            {
                "content": "",
                "embeds": [with_tags(summary, new_value)],
                "components": [build_thread_action_row(add_tags_disabled=False)],
            },
        )
        log_event(
            self._logger,
            logging.INFO,
            "assist.tags.updated",
            thread_id=thread_id,
            tags=list(selection.values),
        )
        return new_value

    async def _report_failure(self, thread_id: str, handle: TagDialogHandle) -> None:
        try:
            if handle.message_id is not None:
                await self._platform.delete_message(
                    thread_id, handle.message_id, missing_ok=True
                )
            await self._platform.send_message(
                thread_id, {"content": TAGS_FAILED_CONTENT}
            )
        except DiscordError as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "assist.tags.failure_notice_failed",
                thread_id=thread_id,
                exc=exc,
            )
