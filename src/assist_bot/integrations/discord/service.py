from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, Optional

from ...core.exceptions import SessionInvariantError
from ...core.logging_utils import log_event
from .actions import ActionKind, AssistAction, parse_action
from .bootstrap import ResolvedChannels, ThreadCreatedBootstrap, resolve_channels
from .collector import EventCollectorHub
from .config import PROMPT_TARGET_THREAD, DiscordBotConfig
from .errors import DiscordError
from .gateway import DiscordGatewayClient
from .interactions import (
    ComponentInteraction,
    extract_component_custom_id,
    is_component_interaction,
)
from .platform import DiscordThreadPlatform
from .rest import DiscordRestClient
from .session import Session
from .workflows import (
    INTERACTION_CREATE,
    MESSAGE_CREATE,
    TagDialog,
    TagDialogRegistry,
    TitleWorkflow,
    WorkflowSettings,
    close_thread,
)

TAG_DIALOG_ALREADY_OPEN = "A tag dialog is already open for this thread."
TAG_DIALOG_EXPIRED = "This tag dialog has expired. Press \"Add tags\" again."

Sleep = Callable[[float], Awaitable[None]]


class AssistBotService:
    """Routes gateway events to per-session workflow tasks."""

    def __init__(
        self,
        config: DiscordBotConfig,
        *,
        logger: logging.Logger,
        rest_client: Optional[Any] = None,
        gateway_client: Optional[Any] = None,
        hub: Optional[EventCollectorHub] = None,
        dialogs: Optional[TagDialogRegistry] = None,
        channels: Optional[ResolvedChannels] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config
        self._logger = logger
        self._sleep = sleep

        self._rest = (
            rest_client
            if rest_client is not None
            else DiscordRestClient(bot_token=config.bot_token)
        )
        self._owns_rest = rest_client is None

        self._gateway = (
            gateway_client
            if gateway_client is not None
            else DiscordGatewayClient(
                bot_token=config.bot_token,
                intents=config.intents,
                logger=logger,
            )
        )
        self._owns_gateway = gateway_client is None

        self._platform = DiscordThreadPlatform(self._rest)
        self._hub = hub if hub is not None else EventCollectorHub()
        self._dialogs = dialogs if dialogs is not None else TagDialogRegistry()
        self._settings = WorkflowSettings(
            title_timeout_seconds=config.title_timeout_seconds,
            close_delay_seconds=config.close_delay_seconds,
            tags=config.tags,
        )
        self._title_workflow = TitleWorkflow(
            self._platform, self._hub, self._settings, logger=logger, sleep=sleep
        )
        self._tag_dialog = TagDialog(
            self._platform, self._hub, self._dialogs, self._settings, logger=logger
        )
        self._channels = channels
        self._bootstrap: Optional[ThreadCreatedBootstrap] = None
        if channels is not None:
            self._bootstrap = self._build_bootstrap(channels)
        self._bot_user_id: Optional[str] = None
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def channels(self) -> Optional[ResolvedChannels]:
        return self._channels

    @property
    def bot_user_id(self) -> Optional[str]:
        return self._bot_user_id

    def _build_bootstrap(self, channels: ResolvedChannels) -> ThreadCreatedBootstrap:
        return ThreadCreatedBootstrap(
            self._platform,
            channels,
            prompt_target=self._config.prompt_target,
            logger=self._logger,
        )

    async def resolve_channels(self) -> ResolvedChannels:
        """Look up the support and FAQ channels once and cache them."""
        if self._channels is None:
            self._channels = await resolve_channels(
                self._platform,
                guild_id=self._config.guild_id,
                help_channel_name=self._config.help_channel_name,
                faq_channel_name=self._config.faq_channel_name,
            )
            self._bootstrap = self._build_bootstrap(self._channels)
            log_event(
                self._logger,
                logging.INFO,
                "assist.bot.channels_resolved",
                guild_id=self._channels.guild_id,
                help_channel_id=self._channels.help_channel_id,
                faq_channel_id=self._channels.faq_channel_id,
            )
        return self._channels

    async def run_forever(self) -> None:
        try:
            await self.resolve_channels()
            log_event(
                self._logger,
                logging.INFO,
                "assist.bot.starting",
                guild_id=self._config.guild_id,
                prompt_target=self._config.prompt_target,
            )
            await self._gateway.run(self._on_dispatch)
        finally:
            await self._shutdown()

    async def post_prompt(self) -> dict[str, Any]:
        """Post the category prompt into the support channel once."""
        try:
            channels = await self.resolve_channels()
            bootstrap = self._bootstrap or self._build_bootstrap(channels)
            return await bootstrap.post_prompt()
        finally:
            await self._shutdown()

    async def diagnose(self) -> dict[str, Any]:
        try:
            user = await self._rest.get_current_user()
            channels = await self.resolve_channels()
        finally:
            await self._shutdown()
        return {
            "bot_user": user.get("username"),
            "bot_user_id": user.get("id"),
            "guild_id": channels.guild_id,
            "help_channel_id": channels.help_channel_id,
            "faq_channel_id": channels.faq_channel_id,
        }

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._hub.close_all()
        if self._owns_gateway:
            with contextlib.suppress(Exception):
                await self._gateway.stop()
        if self._owns_rest and hasattr(self._rest, "close"):
            with contextlib.suppress(Exception):
                await self._rest.close()

    def _spawn(self, coro: Awaitable[Any], *, name: str, **fields: Any) -> None:
        task = asyncio.create_task(self._guard(coro, name=name, fields=fields))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _guard(
        self, coro: Awaitable[Any], *, name: str, fields: dict[str, Any]
    ) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "assist.task.failed",
                task=name,
                exc=exc,
                **fields,
            )

    async def _on_dispatch(self, event_type: str, payload: dict[str, Any]) -> None:
        if event_type == "READY":
            user = payload.get("user")
            if isinstance(user, dict) and user.get("id") is not None:
                self._bot_user_id = str(user["id"])
        elif event_type == MESSAGE_CREATE:
            self._hub.publish(MESSAGE_CREATE, payload)
        elif event_type == INTERACTION_CREATE:
            accepted = self._hub.publish(INTERACTION_CREATE, payload)
            await self._route_interaction(payload, consumed=accepted > 0)
        elif event_type == "THREAD_CREATE":
            if self._bootstrap is not None:
                self._spawn(
                    self._bootstrap.handle_thread_create(
                        payload, bot_user_id=self._bot_user_id
                    ),
                    name="bootstrap",
                    thread_id=payload.get("id"),
                )

    async def _route_interaction(
        self, payload: dict[str, Any], *, consumed: bool
    ) -> None:
        if not is_component_interaction(payload):
            return
        action = parse_action(extract_component_custom_id(payload))
        if action is None:
            return
        try:
            interaction = ComponentInteraction.from_payload(payload)
        except SessionInvariantError as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "assist.interaction.malformed",
                custom_id=extract_component_custom_id(payload),
                exc=exc,
            )
            return

        if action.kind is ActionKind.TAGS_SELECT:
            # A live dialog acknowledges its own selections.
            if not consumed:
                self._spawn(
                    self._platform.respond_ephemeral(
                        interaction.interaction_id,
                        interaction.interaction_token,
                        TAG_DIALOG_EXPIRED,
                    ),
                    name="tags_expired",
                    thread_id=interaction.channel_id,
                )
            return
        if action.kind is ActionKind.ADD_TAGS:
            handle = self._dialogs.open(interaction.channel_id)
            if handle is None:
                self._spawn(
                    self._platform.respond_ephemeral(
                        interaction.interaction_id,
                        interaction.interaction_token,
                        TAG_DIALOG_ALREADY_OPEN,
                    ),
                    name="tags_already_open",
                    thread_id=interaction.channel_id,
                )
                return
            self._spawn(
                self._acknowledged(
                    interaction, lambda: self._tag_dialog.run(interaction, handle)
                ),
                name="tag_dialog",
                thread_id=interaction.channel_id,
            )
            return
        self._spawn(
            self._acknowledged(
                interaction, lambda: self._handle_action(action, interaction)
            ),
            name=action.kind.value,
            channel_id=interaction.channel_id,
            user_id=interaction.user.user_id,
        )

    async def _acknowledged(
        self,
        interaction: ComponentInteraction,
        handler: Callable[[], Awaitable[Any]],
    ) -> Any:
        try:
            await self._platform.acknowledge(
                interaction.interaction_id, interaction.interaction_token
            )
        except DiscordError as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "assist.interaction.ack_failed",
                interaction_id=interaction.interaction_id,
                exc=exc,
            )
        return await handler()

    async def _handle_action(
        self, action: AssistAction, interaction: ComponentInteraction
    ) -> None:
        if action.kind is ActionKind.CATEGORY:
            await self._start_session(action, interaction)
        elif action.kind is ActionKind.CLOSE_THREAD:
            await self._close_thread(interaction)
        elif action.kind is ActionKind.TAGS_SELECT_DISMISS:
            await self._dismiss_tags(interaction)

    async def _start_session(
        self, action: AssistAction, interaction: ComponentInteraction
    ) -> None:
        if action.category is None:
            raise SessionInvariantError(f"action {action.kind.value} has no category")
        thread_parent_id = None
        if (
            self._config.prompt_target == PROMPT_TARGET_THREAD
            and self._channels is not None
        ):
            # Private threads cannot be nested inside the thread holding the prompt.
            thread_parent_id = self._channels.help_channel_id
        session = Session(
            category=action.category,
            user=interaction.user,
            channel_id=interaction.channel_id,
            guild_id=interaction.guild_id,
            prompt_message_id=interaction.message_id,
            thread_parent_id=thread_parent_id,
        )
        await self._title_workflow.run(session)

    async def _close_thread(self, interaction: ComponentInteraction) -> None:
        thread_id = interaction.channel_id
        self._dialogs.cancel(thread_id)
        deleted = await close_thread(
            self._platform,
            thread_id=thread_id,
            message_id=interaction.message_id,
            close_delay_seconds=self._settings.close_delay_seconds,
            sleep=self._sleep,
        )
        log_event(
            self._logger,
            logging.INFO,
            "assist.thread.closed",
            thread_id=thread_id,
            user_id=interaction.user.user_id,
            already_closed=not deleted,
        )

    async def _dismiss_tags(self, interaction: ComponentInteraction) -> None:
        handle = self._dialogs.find_by_message(interaction.message_id)
        if handle is not None:
            handle.cancel_event.set()
        await self._platform.delete_message(
            interaction.channel_id, interaction.message_id, missing_ok=True
        )


def create_assist_bot_service(
    config: DiscordBotConfig,
    *,
    logger: logging.Logger,
) -> AssistBotService:
    return AssistBotService(config, logger=logger)
