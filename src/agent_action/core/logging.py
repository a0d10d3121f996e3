"""Structured logging with run context.

Every record carries the workflow run id, the remote session id and the
selected mode when they are known. JSON output goes through
python-json-logger. Logs go to stderr because stdout carries the
assistant's own output.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any

from pythonjsonlogger import jsonlogger

from agent_action.config import get_settings

run_id_ctx: ContextVar[str | None] = ContextVar("run_id", default=None)
session_id_ctx: ContextVar[str | None] = ContextVar("session_id", default=None)
mode_ctx: ContextVar[str | None] = ContextVar("mode", default=None)

CONTEXT_FIELDS = ("run_id", "session_id", "mode")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(mode)s] %(name)s: %(message)s"

# Libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class RunContextFilter(logging.Filter):
    """Copies the run context variables onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_ctx.get()
        record.session_id = session_id_ctx.get()
        record.mode = mode_ctx.get()
        return True


class ActionJsonFormatter(jsonlogger.JsonFormatter):
    """JSON records with level, logger, source location and run context."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["location"] = f"{record.module}:{record.lineno}"

        # Unset context is dropped instead of serialized as null
        for key in CONTEXT_FIELDS:
            if not log_record.get(key):
                log_record.pop(key, None)


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return ActionJsonFormatter(
            fmt="%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt="%H:%M:%S")


def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Install the stderr handler on the root logger, replacing any others."""
    settings = get_settings()
    level = level or settings.log_level
    log_format = log_format or settings.log_format

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(build_formatter(log_format))
    handler.addFilter(RunContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured",
        extra={"log_level": level, "log_format": log_format},
    )
