"""
Log formatters for SoundFlare Trace.

Human-readable lines for people, JSON lines for log shippers.
"""

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any


def _context_fields(record: logging.LogRecord) -> dict[str, str]:
    fields = {}
    request_id = getattr(record, "request_id", None)
    trace_key = getattr(record, "trace_key", None)
    if request_id:
        fields["request_id"] = request_id
    if trace_key:
        fields["trace_key"] = trace_key
    return fields


class HumanFormatter(logging.Formatter):
    """Human-readable log formatter.

    Format: YYYY-MM-DD HH:MM:SS.mmm | LEVEL | component | file:line | message

    Example:
        2026-01-15 14:23:45.123 | WARNING | soundflare.tracing  | tree.py:88 | Cycle ...
    """

    LEVEL_WIDTH = 7
    NAME_WIDTH = 20

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        time_str = timestamp.strftime("%Y-%m-%d %H:%M:%S.") + f"{int(record.msecs):03d}"

        level = record.levelname.ljust(self.LEVEL_WIDTH)
        component = self._shorten_name(record.name)
        location = f"{record.filename}:{record.lineno}"

        message = record.getMessage()
        context = _context_fields(record)
        if context:
            parts = []
            if "request_id" in context:
                parts.append(f"req={context['request_id']}")
            if "trace_key" in context:
                parts.append(f"trace={context['trace_key']}")
            message = f"{message} [{' '.join(parts)}]"

        formatted = f"{time_str} | {level} | {component} | {location} | {message}"

        if record.exc_info:
            formatted = f"{formatted}\n{self.formatException(record.exc_info)}"

        return formatted

    def _shorten_name(self, name: str) -> str:
        """Shorten a dotted logger name to NAME_WIDTH, keeping first and last parts."""
        max_len = self.NAME_WIDTH
        if len(name) <= max_len:
            return name.ljust(max_len)

        parts = name.split(".")
        if len(parts) >= 2:
            shortened = f"{parts[0]}...{parts[-1]}"
            if len(shortened) <= max_len:
                return shortened.ljust(max_len)

        return name[: max_len - 3] + "..."


class JsonFormatter(logging.Formatter):
    """JSON Lines log formatter.

    Output fields: timestamp, level, logger, message, file, line, function,
    plus request_id / trace_key when set and exception details when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }
        log_data.update(_context_fields(record))

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": self._format_traceback(record.exc_info),
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)

    def _format_traceback(self, exc_info: tuple) -> list[str]:
        if not exc_info or not exc_info[2]:
            return []

        lines = []
        for chunk in traceback.format_exception(*exc_info):
            lines.extend(line for line in chunk.splitlines() if line.strip())
        return lines
