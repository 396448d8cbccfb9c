"""Logging setup for the exporter.

Modules log through the standard library (``logging.getLogger(__name__)``)
and pass context with ``extra=``. The root handler renders those records
through a structlog ``ProcessorFormatter``: ``json`` (one JSON object per
line, the default for containers), ``text`` (structlog's console renderer)
or ``logfmt`` (``key=value`` pairs).
"""

from __future__ import annotations

import logging
import sys

import structlog

_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def parse_level(name: str) -> int | None:
    """Return the logging level for a level name, or None if unknown."""
    return _LEVELS.get((name or "").strip().lower())


def _renderer(fmt: str) -> list[structlog.types.Processor]:
    if fmt == "text":
        return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]
    if fmt == "logfmt":
        return [
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=["timestamp", "level", "logger", "event"]
            ),
        ]
    return [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(level: str = "info", fmt: str = "json") -> logging.Handler:
    """
    Configure the root logger and return the installed handler.

    An unknown level is reported as a warning and INFO is used instead.
    """
    resolved = parse_level(level)
    log_level = resolved if resolved is not None else logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta]
            + _renderer(fmt),
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)
    if resolved is None:
        logging.getLogger(__name__).warning(
            "invalid logging level, using INFO", extra={"requested_level": level}
        )

    logging.getLogger("urllib3").setLevel(max(root.level, logging.WARNING))
    logging.getLogger(__name__).debug(
        "logger configuration finished",
        extra={"logging_format": fmt, "logging_level": logging.getLevelName(root.level)},
    )
    return handler
