"""Logging wiring."""
import json
import logging
from typing import Any

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(level_name: str = "INFO") -> None:
    level = getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)


def log_event(logger: logging.Logger, msg: str, level: int = logging.INFO, **fields: Any) -> None:
    """Emit ``msg`` and ``fields`` as one JSON line."""

    try:
        logger.log(level, json.dumps({"msg": msg, **fields}, ensure_ascii=False, default=str))
    except (TypeError, ValueError):
        logger.log(level, "%s | %s", msg, fields)
