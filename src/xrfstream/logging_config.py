# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 Scipp contributors (https://github.com/scipp)
"""
Structured logging for xrfstream services.

Library modules log through stdlib loggers or ``structlog.get_logger``. Both end up
in the handlers installed on the root logger by :py:func:`configure_logging`.
"""

import logging
import sys
from collections.abc import Iterable
from logging.handlers import RotatingFileHandler

import structlog

# Third-party loggers that are too chatty at INFO level.
NOISY_LOGGERS = ('scipp',)

_JSON_FILE_MAX_BYTES = 10 * 1024 * 1024
_JSON_FILE_BACKUPS = 5

_SHARED_PROCESSORS: list[structlog.typing.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def resolve_level(level: int | str) -> int:
    """Convert a level name such as ``'debug'`` to its number."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level '{level}'")
    return resolved


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
            ],
        )
    )
    return handler


def _json_file_handler(path: str) -> logging.Handler:
    handler = RotatingFileHandler(
        path, maxBytes=_JSON_FILE_MAX_BYTES, backupCount=_JSON_FILE_BACKUPS
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
        )
    )
    return handler


def configure_logging(
    *,
    level: int | str = logging.INFO,
    json_file: str | None = None,
    disable_stdout: bool = False,
    service: str | None = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Configure structured logging for a service process.

    Parameters
    ----------
    level:
        Minimum log level, as number or name (e.g. ``'DEBUG'``).
    json_file:
        Path of a JSON log file. If provided, a rotating file handler (10MB max,
        5 backups) is added.
    disable_stdout:
        If True, nothing is logged to stdout.
    service:
        Name bound to every log entry of the process.
    quiet:
        Names of loggers limited to warnings and above.
    """
    level = resolve_level(level)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.clear_contextvars()
    if service is not None:
        structlog.contextvars.bind_contextvars(service=service)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    if not disable_stdout:
        root_logger.addHandler(_console_handler())
    if json_file is not None:
        root_logger.addHandler(_json_file_handler(json_file))
    root_logger.setLevel(level)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
