from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

from .config import LogConfig

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _coerce_field(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_coerce_field(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _coerce_field(item) for key, item in value.items()}
    return str(value)


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    *,
    exc: BaseException | None = None,
    **fields: Any,
) -> None:
    """Emit one structured log line: a JSON object keyed by ``event``."""
    if not logger.isEnabledFor(level):
        return
    payload: dict[str, Any] = {"event": event}
    for key, value in fields.items():
        payload[key] = _coerce_field(value)
    if exc is not None:
        payload["error"] = str(exc)
        payload["error_type"] = type(exc).__name__
    logger.log(level, json.dumps(payload, ensure_ascii=False, sort_keys=False))


def setup_rotating_logger(name: str, log_config: LogConfig) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(log_config.level)
    for handler in list(logger.handlers):
        if getattr(handler, "_assist_bot_handler", False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(_FORMAT)

    log_config.path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_config.path,
        maxBytes=log_config.max_bytes,
        backupCount=log_config.backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    file_handler._assist_bot_handler = True  # type: ignore[attr-defined]
    logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    stream_handler._assist_bot_handler = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    logger.propagate = False
    return logger
