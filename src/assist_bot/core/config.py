import dataclasses
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, cast

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigError

logger = logging.getLogger("assist_bot.core.config")

ROOT_CONFIG_FILENAME = "assist-bot.yml"
ROOT_OVERRIDE_FILENAME = "assist-bot.override.yml"
DEFAULT_LOG_PATH = ".assist-bot/assist-bot.log"
DEFAULT_LOG_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_LOG_BACKUP_COUNT = 3

__all__ = [
    "AppConfig",
    "ConfigError",
    "LogConfig",
    "load_config",
    "load_dotenv_for_root",
]


def _default_discord_bot_section() -> Dict[str, Any]:
    """Build the default discord_bot section."""
    return {
        "bot_token_env": "TOKEN",
        "guild_id_env": "GUILD_ID",
        "help_channel_name": "help",
        "faq_channel_name": "faq",
        "title_timeout_seconds": 600,
        "close_delay_seconds": 1.0,
        "intents": 33281,
        "bootstrap": {
            "prompt_target": "channel",
        },
    }


def _default_log_section() -> Dict[str, Any]:
    return {
        "path": DEFAULT_LOG_PATH,
        "max_bytes": DEFAULT_LOG_MAX_BYTES,
        "backup_count": DEFAULT_LOG_BACKUP_COUNT,
        "level": "INFO",
    }


DEFAULT_CONFIG: Dict[str, Any] = {
    "discord_bot": _default_discord_bot_section(),
    "log": _default_log_section(),
}


@dataclasses.dataclass
class LogConfig:
    path: Path
    max_bytes: int
    backup_count: int
    level: int = logging.INFO


@dataclasses.dataclass
class AppConfig:
    root: Path
    raw: Dict[str, Any]
    log: LogConfig

    def section(self, name: str) -> Dict[str, Any]:
        value = self.raw.get(name)
        return value if isinstance(value, dict) else {}


def _merge_defaults(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = cast(Dict[str, Any], json.loads(json.dumps(base)))
    for key, value in overrides.items():
        if isinstance(value, dict) and key in merged and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml_dict(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a mapping: {path}")
    return data


def _load_root_config(root: Path) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    base = _load_yaml_dict(root / ROOT_CONFIG_FILENAME)
    if base:
        merged = _merge_defaults(merged, base)
    override_path = root / ROOT_OVERRIDE_FILENAME
    try:
        override = _load_yaml_dict(override_path)
    except ConfigError as exc:
        raise ConfigError(
            f"Invalid override config {override_path}; fix or delete it: {exc}"
        ) from exc
    if override:
        merged = _merge_defaults(merged, override)
    return merged


def load_dotenv_for_root(root: Path) -> None:
    """
    Best-effort load of environment variables for the provided root.

    Values in ``root/.env`` take precedence over inherited process env.
    """
    try:
        candidate = root.resolve() / ".env"
        if candidate.exists():
            load_dotenv(dotenv_path=candidate, override=True)
    except OSError as exc:
        logger.debug("Failed to load .env file: %s", exc)


def _parse_log_level(value: Any) -> int:
    if isinstance(value, int):
        return value
    name = str(value or "INFO").strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ConfigError(f"log.level must be a logging level name, got {value!r}")
    return level


def _parse_log_config(root: Path, raw: Dict[str, Any]) -> LogConfig:
    log_raw = raw.get("log")
    if not isinstance(log_raw, dict):
        raise ConfigError("log must be a mapping")
    path_value = log_raw.get("path", DEFAULT_LOG_PATH)
    if not isinstance(path_value, str) or not path_value.strip():
        raise ConfigError("log.path must be a string path")
    try:
        max_bytes = int(log_raw.get("max_bytes", DEFAULT_LOG_MAX_BYTES))
        backup_count = int(log_raw.get("backup_count", DEFAULT_LOG_BACKUP_COUNT))
    except (TypeError, ValueError) as exc:
        raise ConfigError("log.max_bytes and log.backup_count must be integers") from exc
    if max_bytes <= 0:
        raise ConfigError("log.max_bytes must be > 0")
    if backup_count < 0:
        raise ConfigError("log.backup_count must be >= 0")
    return LogConfig(
        path=(root / path_value).resolve(),
        max_bytes=max_bytes,
        backup_count=backup_count,
        level=_parse_log_level(log_raw.get("level")),
    )


def load_config(root: Optional[Path] = None) -> AppConfig:
    """Load ``assist-bot.yml`` (plus override and ``.env``) from ``root``."""
    root = (root or Path.cwd()).resolve()
    if not root.is_dir():
        raise ConfigError(f"Config root is not a directory: {root}")
    load_dotenv_for_root(root)
    raw = _merge_defaults(DEFAULT_CONFIG, _load_root_config(root))
    return AppConfig(root=root, raw=raw, log=_parse_log_config(root, raw))
