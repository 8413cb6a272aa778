"""structlog over the stdlib root logger.

Every module logs through ``get_logger(__name__)``; the request middleware in
``main`` binds a ``request_id`` that then rides along on each event.
"""

import logging
import sys
from typing import Any, Optional

import structlog

import settings

LEVELS = {"production": "INFO", "staging": "INFO", "development": "DEBUG", "test": "WARNING"}
JSON_ENVS = ("production", "staging")
# Chatty at DEBUG and not ours to debug.
QUIET_LOGGERS = ("pymongo", "urllib3", "multipart")


def log_level(env: str, override: Optional[str] = None) -> str:
    return (override or LEVELS.get(env, "INFO")).upper()


def renderer(env: str):
    if env in JSON_ENVS:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(env: Optional[str] = None) -> None:
    env = env or settings.ENV
    level = log_level(env, settings.LOG_LEVEL)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [logging.StreamHandler(sys.stdout)]
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer(env),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def add_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
