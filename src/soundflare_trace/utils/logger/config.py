"""
Logging configuration for SoundFlare Trace.

Reads logging settings from environment variables with sensible defaults.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Environment variable names
DEBUG_ENV = "SOUNDFLARE_DEBUG"
LOG_LEVEL_ENV = "SOUNDFLARE_LOG_LEVEL"
LOG_CONSOLE_ENV = "SOUNDFLARE_LOG_CONSOLE"
LOG_DIR_ENV = "SOUNDFLARE_LOG_DIR"

# Default log directory (XDG state location)
LOG_DIR = Path.home() / ".local" / "state" / "soundflare-trace" / "logs"

HUMAN_LOG_FILE = "soundflare-trace.log"
JSON_LOG_FILE = "soundflare-trace.json"

LOG_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

_TRUTHY = ("1", "true", "yes")
_FALSY = ("0", "false", "no")


@dataclass
class LogConfig:
    """Configuration for the logging system.

    Attributes:
        log_dir: Directory where log files are stored
        human_log_max_bytes: Size of the human-readable log before rotation
        human_log_backup_count: Rotated human-readable files to keep
        json_log_max_bytes: Size of the JSON log before rotation
        json_log_backup_count: Rotated JSON files to keep
        default_level: Default logging level
        console_enabled: Whether to also log to stderr
        file_enabled: Whether to write log files at all
    """

    log_dir: Path = field(default_factory=lambda: LOG_DIR)
    human_log_max_bytes: int = 5 * 1024 * 1024  # 5MB
    human_log_backup_count: int = 3
    json_log_max_bytes: int = 10 * 1024 * 1024  # 10MB
    json_log_backup_count: int = 3
    default_level: int = logging.INFO
    console_enabled: bool = False
    file_enabled: bool = True

    @property
    def human_log_path(self) -> Path:
        """Full path to the human-readable log file."""
        return self.log_dir / HUMAN_LOG_FILE

    @property
    def json_log_path(self) -> Path:
        """Full path to the JSON log file."""
        return self.log_dir / JSON_LOG_FILE


def get_config() -> LogConfig:
    """Create a LogConfig from environment variables.

    Environment variables:
        SOUNDFLARE_DEBUG: '1', 'true' or 'yes' enables debug level and console
        SOUNDFLARE_LOG_LEVEL: 'debug', 'info', 'warning', 'error', 'critical'
        SOUNDFLARE_LOG_CONSOLE: force console output on or off
        SOUNDFLARE_LOG_DIR: override the log directory

    Returns:
        LogConfig with settings from environment, falling back to defaults.
    """
    config = LogConfig()

    if os.environ.get(DEBUG_ENV, "").lower() in _TRUTHY:
        config.default_level = logging.DEBUG
        config.console_enabled = True

    log_level_str = os.environ.get(LOG_LEVEL_ENV, "").lower()
    if log_level_str in LOG_LEVEL_MAP:
        config.default_level = LOG_LEVEL_MAP[log_level_str]

    console_env = os.environ.get(LOG_CONSOLE_ENV, "").lower()
    if console_env in _TRUTHY:
        config.console_enabled = True
    elif console_env in _FALSY:
        config.console_enabled = False

    log_dir = os.environ.get(LOG_DIR_ENV)
    if log_dir:
        config.log_dir = Path(log_dir).expanduser()

    return config


def ensure_log_directory(config: Optional[LogConfig] = None) -> Path:
    """Ensure the log directory exists and return it."""
    log_dir = config.log_dir if config else LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir
