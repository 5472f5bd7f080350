from __future__ import annotations

DISCORD_API_BASE_URL = "https://discord.com/api/v10"
DISCORD_GATEWAY_URL = "wss://gateway.discord.gg/?v=10&encoding=json"
DISCORD_WEB_BASE_URL = "https://discord.com/channels"

# Common gateway intents bitflags (https://discord.com/developers/docs/topics/gateway#gateway-intents).
DISCORD_INTENT_GUILDS = 1 << 0
DISCORD_INTENT_GUILD_MESSAGES = 1 << 9
DISCORD_INTENT_MESSAGE_CONTENT = 1 << 15

DISCORD_CHANNEL_TYPE_PRIVATE_THREAD = 12

# Interaction types and callback types.
DISCORD_INTERACTION_TYPE_COMPONENT = 3
DISCORD_RESPONSE_CHANNEL_MESSAGE = 4
DISCORD_RESPONSE_DEFERRED_UPDATE = 6

# Message flags.
DISCORD_FLAG_SUPPRESS_EMBEDS = 1 << 2
DISCORD_FLAG_EPHEMERAL = 1 << 6

# Every custom id this bot emits starts with this prefix.
ACTION_NAMESPACE = "assist-"
