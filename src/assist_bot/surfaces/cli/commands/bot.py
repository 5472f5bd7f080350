from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

import typer

from ....core.config import AppConfig, ConfigError, load_config
from ....core.logging_utils import setup_rotating_logger
from ....integrations.discord.config import DiscordBotConfig
from ....integrations.discord.errors import DiscordError
from ....integrations.discord.service import AssistBotService, create_assist_bot_service

LOGGER_NAME = "assist-bot"


def _load_bot_config(
    path: Optional[Path], *, raise_exit: Callable
) -> tuple[AppConfig, DiscordBotConfig]:
    try:
        config = load_config(path or Path.cwd())
    except ConfigError as exc:
        raise_exit(str(exc), cause=exc)
    try:
        bot_config = DiscordBotConfig.from_raw(
            root=config.root, raw=config.section("discord_bot")
        )
    except DiscordError as exc:
        raise_exit(str(exc), cause=exc)
    return config, bot_config


def _build_service(
    path: Optional[Path], *, raise_exit: Callable
) -> AssistBotService:
    config, bot_config = _load_bot_config(path, raise_exit=raise_exit)
    logger: logging.Logger = setup_rotating_logger(LOGGER_NAME, config.log)
    return create_assist_bot_service(bot_config, logger=logger)


def register_bot_commands(app: typer.Typer, *, raise_exit: Callable) -> None:
    @app.command("start")
    def bot_start(
        path: Optional[Path] = typer.Option(
            None, "--path", help="Directory holding assist-bot.yml and .env"
        ),
    ) -> None:
        """Connect to the gateway and serve support threads until interrupted."""
        service = _build_service(path, raise_exit=raise_exit)
        try:
            asyncio.run(service.run_forever())
        except DiscordError as exc:
            raise_exit(str(exc), cause=exc)
        except KeyboardInterrupt:
            typer.echo("Assist bot stopped.")

    @app.command("post-prompt")
    def bot_post_prompt(
        path: Optional[Path] = typer.Option(
            None, "--path", help="Directory holding assist-bot.yml and .env"
        ),
    ) -> None:
        """Post the category-choice prompt into the support channel."""
        service = _build_service(path, raise_exit=raise_exit)
        try:
            message = asyncio.run(service.post_prompt())
        except DiscordError as exc:
            raise_exit(str(exc), cause=exc)
        typer.echo(f"Posted prompt message {message.get('id')}.")

    @app.command("doctor")
    def bot_doctor(
        path: Optional[Path] = typer.Option(
            None, "--path", help="Directory holding assist-bot.yml and .env"
        ),
    ) -> None:
        """Check configuration and that the support channels resolve."""
        service = _build_service(path, raise_exit=raise_exit)
        try:
            report = asyncio.run(service.diagnose())
        except DiscordError as exc:
            raise_exit(f"Doctor check failed: {exc}", cause=exc)
        for key, value in report.items():
            typer.echo(f"{key}: {value}")
        typer.echo("Doctor check passed.")
