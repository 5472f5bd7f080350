from __future__ import annotations

from pathlib import Path

import pytest

from assist_bot.integrations.discord.config import (
    DEFAULT_INTENTS,
    PROMPT_TARGET_CHANNEL,
    PROMPT_TARGET_THREAD,
    DiscordBotConfig,
    DiscordBotConfigError,
)
from assist_bot.integrations.discord.tags import DEFAULT_TAG_CATALOG


def test_defaults(tmp_path: Path, discord_env: dict[str, str]) -> None:
    cfg = DiscordBotConfig.from_raw(root=tmp_path, raw={})

    assert cfg.bot_token == "test-token"
    assert cfg.guild_id == "1000"
    assert cfg.help_channel_name == "help"
    assert cfg.faq_channel_name == "faq"
    assert cfg.title_timeout_seconds == 600.0
    assert cfg.close_delay_seconds == 1.0
    assert cfg.intents == DEFAULT_INTENTS
    assert cfg.tags == DEFAULT_TAG_CATALOG
    assert cfg.prompt_target == PROMPT_TARGET_CHANNEL


def test_custom_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPPORT_BOT_TOKEN", "tok")
    monkeypatch.setenv("SUPPORT_GUILD", "42")

    cfg = DiscordBotConfig.from_raw(
        root=tmp_path,
        raw={
            "bot_token_env": "SUPPORT_BOT_TOKEN",
            "guild_id_env": "SUPPORT_GUILD",
            "help_channel_name": "support",
            "title_timeout_seconds": 120,
            "close_delay_seconds": 0,
            "tags": ["Linux", " Windows ", "Linux"],
            "bootstrap": {"prompt_target": "Thread"},
        },
    )

    assert cfg.guild_id == "42"
    assert cfg.help_channel_name == "support"
    assert cfg.title_timeout_seconds == 120.0
    assert cfg.close_delay_seconds == 0.0
    assert cfg.tags == ("Linux", "Windows")
    assert cfg.prompt_target == PROMPT_TARGET_THREAD


def test_missing_token_is_config_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("TOKEN", raising=False)
    monkeypatch.setenv("GUILD_ID", "1000")

    with pytest.raises(DiscordBotConfigError, match="TOKEN"):
        DiscordBotConfig.from_raw(root=tmp_path, raw={})


def test_non_numeric_guild_is_config_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TOKEN", "tok")
    monkeypatch.setenv("GUILD_ID", "my-guild")

    with pytest.raises(DiscordBotConfigError, match="numeric"):
        DiscordBotConfig.from_raw(root=tmp_path, raw={})


@pytest.mark.parametrize(
    "raw",
    [
        {"title_timeout_seconds": 0},
        {"close_delay_seconds": -1},
        {"title_timeout_seconds": "soon"},
        {"intents": "all"},
        {"tags": ["Linux, Windows"]},
        {"tags": []},
        {"tags": [f"tag-{i}" for i in range(26)]},
        {"bootstrap": {"prompt_target": "dm"}},
        {"help_channel_name": ""},
    ],
)
def test_invalid_values_are_rejected(
    tmp_path: Path, discord_env: dict[str, str], raw: dict
) -> None:
    with pytest.raises(DiscordBotConfigError):
        DiscordBotConfig.from_raw(root=tmp_path, raw=raw)
