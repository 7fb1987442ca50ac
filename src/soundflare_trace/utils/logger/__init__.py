"""
Structured logging for SoundFlare Trace.

Simple API:
    from soundflare_trace.utils.logger import debug, info, warn, error

    info(f"Loaded {count} spans")

Component API:
    from soundflare_trace.utils.logger import get_logger, log_context

    logger = get_logger("tracing")
    with log_context(trace_key="tk_123"):
        logger.warning("Cycle detected")  # logged as soundflare.tracing
"""

import logging
from typing import Any, Optional

from .config import LogConfig, get_config, ensure_log_directory
from .context import (
    ContextFilter,
    log_context,
    get_request_id,
    get_trace_key,
    generate_request_id,
)
from .handlers import setup_handlers

ROOT_LOGGER_NAME = "soundflare"

_initialized = False
_root_logger: Optional[logging.Logger] = None


def setup_logging(config: Optional[LogConfig] = None) -> logging.Logger:
    """Initialize the logging system.

    Call once at startup; later calls reconfigure handlers in place.

    Args:
        config: Optional LogConfig. If not provided, reads from environment.

    Returns:
        The configured root logger.
    """
    global _initialized, _root_logger

    if config is None:
        config = get_config()

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    setup_handlers(logger, config)

    if not any(isinstance(f, ContextFilter) for f in logger.filters):
        logger.addFilter(ContextFilter())

    # Keep our records out of the host application's root logger
    logger.propagate = False

    _initialized = True
    _root_logger = logger
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get the root logger or a component child logger.

    The logging system is initialized on first use.

    Example:
        get_logger("api").info("Started")  # logs as "soundflare.api"
    """
    if not _initialized:
        setup_logging()

    if name:
        child = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
        # Filters on the parent logger do not run for child records
        if not any(isinstance(f, ContextFilter) for f in child.filters):
            child.addFilter(ContextFilter())
        return child
    return _root_logger or logging.getLogger(ROOT_LOGGER_NAME)


def debug(msg: str, *args: Any, **kwargs: Any) -> None:
    get_logger().debug(msg, *args, **kwargs)


def info(msg: str, *args: Any, **kwargs: Any) -> None:
    get_logger().info(msg, *args, **kwargs)


def warn(msg: str, *args: Any, **kwargs: Any) -> None:
    get_logger().warning(msg, *args, **kwargs)


def error(msg: str, *args: Any, **kwargs: Any) -> None:
    get_logger().error(msg, *args, **kwargs)


def exception(msg: str, *args: Any, **kwargs: Any) -> None:
    """Log an error with exception info. Call from an except block."""
    get_logger().exception(msg, *args, **kwargs)


class _LazyLogger:
    """Root logger proxy that initializes logging on first use.

    Importing the package does not create log files.
    """

    _instance: Optional[logging.Logger] = None

    def __getattr__(self, attr: str) -> Any:
        if self._instance is None:
            self._instance = get_logger()
        return getattr(self._instance, attr)


log: Any = _LazyLogger()


__all__ = [
    "log",
    "debug",
    "info",
    "warn",
    "error",
    "exception",
    "setup_logging",
    "get_logger",
    "LogConfig",
    "get_config",
    "ensure_log_directory",
    "log_context",
    "get_request_id",
    "get_trace_key",
    "generate_request_id",
    "ContextFilter",
    "ROOT_LOGGER_NAME",
]
