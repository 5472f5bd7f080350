from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from assist_bot.core.config import ConfigError, load_config


def test_load_config_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.root == tmp_path.resolve()
    bot = config.section("discord_bot")
    assert bot["help_channel_name"] == "help"
    assert bot["title_timeout_seconds"] == 600
    assert bot["bootstrap"]["prompt_target"] == "channel"
    assert config.log.path == (tmp_path / ".assist-bot" / "assist-bot.log").resolve()
    assert config.log.level == logging.INFO


def test_override_file_is_merged_over_root_config(tmp_path: Path) -> None:
    (tmp_path / "assist-bot.yml").write_text(
        "discord_bot:\n"
        "  help_channel_name: support\n"
        "  faq_channel_name: docs\n"
        "log:\n"
        "  level: debug\n",
        encoding="utf-8",
    )
    (tmp_path / "assist-bot.override.yml").write_text(
        "discord_bot:\n  faq_channel_name: readme\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    bot = config.section("discord_bot")
    assert bot["help_channel_name"] == "support"
    assert bot["faq_channel_name"] == "readme"
    assert bot["close_delay_seconds"] == 1.0
    assert config.log.level == logging.DEBUG


def test_invalid_yaml_is_config_error(tmp_path: Path) -> None:
    (tmp_path / "assist-bot.yml").write_text("discord_bot: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(tmp_path)


def test_non_mapping_config_is_config_error(tmp_path: Path) -> None:
    (tmp_path / "assist-bot.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        load_config(tmp_path)


def test_invalid_log_settings_are_rejected(tmp_path: Path) -> None:
    (tmp_path / "assist-bot.yml").write_text(
        "log:\n  max_bytes: 0\n", encoding="utf-8"
    )

    with pytest.raises(ConfigError, match="max_bytes"):
        load_config(tmp_path)


def test_dotenv_overrides_process_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("ASSIST_BOT_TEST_TOKEN", "from-process")
    (tmp_path / ".env").write_text("ASSIST_BOT_TEST_TOKEN=from-dotenv\n", encoding="utf-8")

    load_config(tmp_path)

    assert os.environ["ASSIST_BOT_TEST_TOKEN"] == "from-dotenv"


def test_missing_root_is_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing")
