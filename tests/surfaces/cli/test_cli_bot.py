from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from assist_bot import __version__
from assist_bot.integrations.discord.config import DiscordBotConfigError
from assist_bot.surfaces.cli import cli as cli_module
from assist_bot.surfaces.cli.commands import bot as bot_commands

runner = CliRunner()


class _FakeService:
    def __init__(self, *, fail: bool = False) -> None:
        self._fail = fail

    async def diagnose(self) -> dict[str, Any]:
        if self._fail:
            raise DiscordBotConfigError("No #help channel found in guild 1000")
        return {"bot_user": "assist", "help_channel_id": "100", "faq_channel_id": "200"}

    async def post_prompt(self) -> dict[str, Any]:
        return {"id": "msg-1"}


@pytest.fixture
def bot_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOKEN", "test-token")
    monkeypatch.setenv("GUILD_ID", "1000")


def _use_service(monkeypatch: pytest.MonkeyPatch, service: _FakeService) -> None:
    monkeypatch.setattr(
        bot_commands,
        "create_assist_bot_service",
        lambda _config, *, logger: service,
    )


def test_version_flag() -> None:
    result = runner.invoke(cli_module.app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_doctor_reports_resolved_channels(
    tmp_path: Path, bot_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    _use_service(monkeypatch, _FakeService())

    result = runner.invoke(cli_module.app, ["doctor", "--path", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "help_channel_id: 100" in result.output
    assert "Doctor check passed." in result.output


def test_doctor_fails_when_channels_are_missing(
    tmp_path: Path, bot_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    _use_service(monkeypatch, _FakeService(fail=True))

    result = runner.invoke(cli_module.app, ["doctor", "--path", str(tmp_path)])

    assert result.exit_code == 1
    assert "No #help channel" in result.output


def test_post_prompt(
    tmp_path: Path, bot_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    _use_service(monkeypatch, _FakeService())

    result = runner.invoke(cli_module.app, ["post-prompt", "--path", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "msg-1" in result.output


def test_missing_token_exits_with_config_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("TOKEN", raising=False)
    monkeypatch.setenv("GUILD_ID", "1000")

    result = runner.invoke(cli_module.app, ["start", "--path", str(tmp_path)])

    assert result.exit_code == 1
    assert "TOKEN" in result.output


def test_invalid_yaml_exits_with_config_error(tmp_path: Path, bot_env: None) -> None:
    (tmp_path / "assist-bot.yml").write_text("discord_bot: [", encoding="utf-8")

    result = runner.invoke(cli_module.app, ["doctor", "--path", str(tmp_path)])

    assert result.exit_code == 1
    assert "Invalid YAML" in result.output
