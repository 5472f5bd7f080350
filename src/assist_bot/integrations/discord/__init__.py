"""Discord support-thread integration."""

from .actions import ActionKind, AssistAction, parse_action
from .bootstrap import ResolvedChannels, ThreadCreatedBootstrap, resolve_channels
from .categories import ThreadCategory, placeholder_thread_name, possessive
from .collector import CollectedEvent, EventCollector, EventCollectorHub
from .config import DiscordBotConfig, DiscordBotConfigError
from .errors import (
    DiscordAPIError,
    DiscordConfigError,
    DiscordError,
    DiscordNotFoundError,
    DiscordPermanentError,
    DiscordTransientError,
)
from .gateway import DiscordGatewayClient, GatewayFrame, parse_gateway_frame
from .platform import DiscordThreadPlatform
from .rest import DiscordRestClient
from .service import AssistBotService, create_assist_bot_service
from .session import Session, SessionState
from .tags import NO_TAGS_SENTINEL, format_tags, parse_tags
from .workflows import TagDialog, TagDialogRegistry, TitleWorkflow, close_thread

__all__ = [
    "ActionKind",
    "AssistAction",
    "AssistBotService",
    "CollectedEvent",
    "DiscordAPIError",
    "DiscordBotConfig",
    "DiscordBotConfigError",
    "DiscordConfigError",
    "DiscordError",
    "DiscordGatewayClient",
    "DiscordNotFoundError",
    "DiscordPermanentError",
    "DiscordRestClient",
    "DiscordThreadPlatform",
    "DiscordTransientError",
    "EventCollector",
    "EventCollectorHub",
    "GatewayFrame",
    "NO_TAGS_SENTINEL",
    "ResolvedChannels",
    "Session",
    "SessionState",
    "TagDialog",
    "TagDialogRegistry",
    "ThreadCategory",
    "ThreadCreatedBootstrap",
    "TitleWorkflow",
    "close_thread",
    "create_assist_bot_service",
    "format_tags",
    "parse_action",
    "parse_gateway_frame",
    "parse_tags",
    "placeholder_thread_name",
    "possessive",
    "resolve_channels",
]
