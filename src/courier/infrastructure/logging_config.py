"""structlog configuration shared by the CLI and the webchat server."""

from __future__ import annotations

import logging
import os
import sys

import structlog

from courier.core.domain.config_schema import CourierConfig

_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def resolve_log_level(level: str | None = None) -> int:
    """Map a level name (or ``$LOGLEVEL``) to a ``logging`` level, INFO by default."""
    name = (level or os.getenv("LOGLEVEL", "INFO")).upper()
    return _LOG_LEVELS.get(name, logging.INFO)


def configure_logging(level: str | None = None, *, json_output: bool = False) -> None:
    """Configure stdlib logging and structlog with the same level.

    Args:
        level: Level name; defaults to ``$LOGLEVEL`` or INFO.
        json_output: Render events as JSON lines instead of console output.
    """
    log_level = resolve_log_level(level)

    logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stderr)
    logging.getLogger().setLevel(log_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


def configure_logging_from_config(
    config: CourierConfig,
    *,
    level: str | None = None,
    json_output: bool = False,
) -> None:
    """Apply the ``logging`` section of a loaded config file.

    An explicit ``level`` (``--log-level`` or ``$LOGLEVEL``) and ``json_output``
    take precedence over the file. Without a ``logging`` section in the file
    the current configuration is left alone.
    """
    if "logging" not in config.model_fields_set:
        return
    configure_logging(
        level or config.logging.level,
        json_output=json_output or config.logging.json_output,
    )


def _stderr_logger_factory(*args: object) -> structlog.PrintLogger:
    # Resolve sys.stderr per logger so redirected streams are honoured.
    return structlog.PrintLogger(file=sys.stderr)
