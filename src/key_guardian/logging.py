"""Structured logging setup for key-guardian."""
from __future__ import annotations

import logging
import sys
from typing import Dict

import structlog

from .config import AppConfig, LoggingConfig

_DEFAULT_LEVEL = "info"


def configure_logging(level: str | LoggingConfig | AppConfig | None = None) -> None:
    """Configure structlog for the library.

    The configuration emits JSON lines with the keys ``level``, ``ts``, ``msg`` and
    ``component`` while still preserving any additional context supplied by callers
    (``kid``, ``alg``, ``kty``). Key material is never passed to the logger.

    ``level`` is a level name or a loaded config whose ``logging.level`` applies.
    """

    if isinstance(level, AppConfig):
        level = level.logging
    if isinstance(level, LoggingConfig):
        level = level.normalized_level()
    log_level = (level or _DEFAULT_LEVEL).lower()
    numeric_level = _level_from_str(log_level)

    logging.basicConfig(
        level=numeric_level,
        handlers=[logging.StreamHandler(sys.stdout)],
        format="%(message)s",
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso", key="ts"),
            structlog.stdlib.add_log_level,
            _component_processor,
            _rename_event_to_msg,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )


def _component_processor(
    logger: structlog.BoundLoggerBase, _name: str, event_dict: dict[str, object]
) -> dict[str, object]:
    """Ensure every log record carries a ``component`` field."""

    component = event_dict.get("component")
    if component is None:
        logger_name = getattr(logger, "name", None) or "key_guardian"
        event_dict["component"] = logger_name
    return event_dict


def _rename_event_to_msg(
    _logger: structlog.BoundLoggerBase, _name: str, event_dict: dict[str, object]
) -> dict[str, object]:
    if "msg" not in event_dict:
        event = event_dict.pop("event", "")
        event_dict["msg"] = event
    return event_dict


def _level_from_str(level: str) -> int:
    mapping: Dict[str, int] = {
        "critical": logging.CRITICAL,
        "error": logging.ERROR,
        "warning": logging.WARNING,
        "info": logging.INFO,
        "debug": logging.DEBUG,
    }
    return mapping.get(level, logging.INFO)


__all__ = ["configure_logging"]
