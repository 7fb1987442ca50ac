"""
Log handlers for SoundFlare Trace.

Rotating file handlers for human-readable and JSON logs, plus stderr.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config import LogConfig, ensure_log_directory, get_config
from .formatters import HumanFormatter, JsonFormatter


def create_file_handler(config: LogConfig) -> RotatingFileHandler:
    """Create a rotating handler for the human-readable log."""
    ensure_log_directory(config)

    handler = RotatingFileHandler(
        filename=config.human_log_path,
        maxBytes=config.human_log_max_bytes,
        backupCount=config.human_log_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(HumanFormatter())
    return handler


def create_json_handler(config: LogConfig) -> RotatingFileHandler:
    """Create a rotating handler for the JSON-lines log."""
    ensure_log_directory(config)

    handler = RotatingFileHandler(
        filename=config.json_log_path,
        maxBytes=config.json_log_max_bytes,
        backupCount=config.json_log_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(JsonFormatter())
    return handler


def create_console_handler(config: LogConfig) -> logging.StreamHandler:
    """Create a stderr handler.

    Console shows warnings and above unless the configured level is DEBUG.
    """
    handler = logging.StreamHandler(sys.stderr)
    if config.default_level == logging.DEBUG:
        handler.setLevel(logging.DEBUG)
    else:
        handler.setLevel(logging.WARNING)
    handler.setFormatter(HumanFormatter())
    return handler


def setup_handlers(
    logger: logging.Logger,
    config: Optional[LogConfig] = None,
    include_console: Optional[bool] = None,
) -> None:
    """Replace the handlers of `logger` according to `config`.

    Args:
        logger: The logger to configure.
        config: Optional LogConfig. Read from the environment if omitted.
        include_console: Override for config.console_enabled.
    """
    if config is None:
        config = get_config()

    console_enabled = (
        include_console if include_console is not None else config.console_enabled
    )

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if config.file_enabled:
        logger.addHandler(create_file_handler(config))
        logger.addHandler(create_json_handler(config))

    if console_enabled:
        logger.addHandler(create_console_handler(config))

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger.setLevel(config.default_level)
