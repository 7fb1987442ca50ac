"""
Data models for SoundFlare Trace.

Span rows arrive from the collector with snake_case columns. A Span is
immutable once parsed; tree level and children are derived elsewhere and
carried by FlatSpan.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from .errors import MalformedSpanError
from .utils.logger import warn

# Columns the collector writes for each span, in select order
SPAN_COLUMNS = (
    "id",
    "span_id",
    "trace_key",
    "name",
    "operation_type",
    "start_time_ns",
    "end_time_ns",
    "duration_ms",
    "status",
    "parent_span_id",
    "captured_at",
    "attributes",
    "events",
)


class SpanStatus(Enum):
    OK = "ok"
    ERROR = "error"
    UNSET = "unset"

    @classmethod
    def parse(cls, value: Any) -> Optional["SpanStatus"]:
        """Normalize a raw status (string or OTel status code 0/1/2)."""
        if value is None or value == "":
            return None
        if isinstance(value, dict):
            value = value.get("code")
        if isinstance(value, int) and not isinstance(value, bool):
            return {0: cls.UNSET, 1: cls.OK, 2: cls.ERROR}.get(value)
        text = str(value).strip().lower()
        if text.startswith("status_code_"):
            text = text[len("status_code_") :]
        for status in cls:
            if status.value == text:
                return status
        return None


class TurnType(Enum):
    SESSION_MANAGEMENT = "session_management"
    USER_TURN = "user_turn"
    ASSISTANT_TURN = "assistant_turn"


def coerce_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None


def coerce_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Span:
    """A single telemetry record as stored by the collector."""

    id: str
    span_id: Optional[str] = None
    trace_key: Optional[str] = None
    name: Optional[str] = None
    operation_type: Optional[str] = None
    start_time_ns: Optional[int] = None
    end_time_ns: Optional[int] = None
    duration_ms: Optional[float] = None
    status: Optional[Any] = None
    parent_span_id: Optional[str] = None
    captured_at: Optional[float] = None
    attributes: Any = None
    events: Any = None
    # Columns this version does not know about, kept for round-tripping
    extra: dict = field(default_factory=dict, compare=False)

    @property
    def logical_id(self) -> str:
        """Identifier used for parent/child linking (falls back to id)."""
        return self.span_id or self.id

    @property
    def sort_time(self) -> float:
        """Chronological key: captured_at, else start_time_ns, else 0."""
        return self.captured_at or self.start_time_ns or 0

    @property
    def status_code(self) -> Optional[SpanStatus]:
        return SpanStatus.parse(self.status)

    @property
    def is_error(self) -> bool:
        return self.status_code is SpanStatus.ERROR

    @classmethod
    def from_dict(cls, row: dict) -> "Span":
        """Parse a collector row.

        Raises:
            MalformedSpanError: the row is not a mapping or has no id.
        """
        if not isinstance(row, dict):
            raise MalformedSpanError(f"Span row must be a mapping, got {type(row).__name__}")

        span_id = row.get("id")
        if span_id is None or span_id == "":
            raise MalformedSpanError("Span row has no id", row)

        extra = {k: v for k, v in row.items() if k not in SPAN_COLUMNS}

        return cls(
            id=str(span_id),
            span_id=str(row["span_id"]) if row.get("span_id") else None,
            trace_key=row.get("trace_key"),
            name=row.get("name"),
            operation_type=row.get("operation_type"),
            start_time_ns=coerce_int(row.get("start_time_ns")),
            end_time_ns=coerce_int(row.get("end_time_ns")),
            duration_ms=coerce_float(row.get("duration_ms")),
            status=row.get("status"),
            parent_span_id=(
                str(row["parent_span_id"]) if row.get("parent_span_id") else None
            ),
            captured_at=coerce_float(row.get("captured_at")),
            attributes=row.get("attributes"),
            events=row.get("events"),
            extra=extra,
        )

    def to_dict(self) -> dict:
        data = {column: getattr(self, column) for column in SPAN_COLUMNS}
        data.update(self.extra)
        return data


def parse_spans(rows: Iterable[dict]) -> list[Span]:
    """Parse collector rows, dropping malformed ones with a warning."""
    spans = []
    for row in rows:
        try:
            spans.append(Span.from_dict(row))
        except MalformedSpanError as e:
            warn(f"Dropping malformed span row: {e}")
    return spans


@dataclass(frozen=True)
class FlatSpan:
    """A span placed in the flattened display order."""

    span: Span
    level: int
    # Resolved parent (logical id), None for roots including orphans
    parent_span_id: Optional[str] = None
    child_count: int = 0

    @property
    def has_children(self) -> bool:
        return self.child_count > 0

    @property
    def name(self) -> Optional[str]:
        return self.span.name

    def to_dict(self) -> dict:
        data = self.span.to_dict()
        data["level"] = self.level
        data["resolved_parent_span_id"] = self.parent_span_id
        data["child_count"] = self.child_count
        return data


@dataclass
class ConversationTurn:
    """A run of flattened spans opened by a sentinel span."""

    id: str
    type: TurnType
    title: str
    spans: list[FlatSpan]
    start_time: float = 0
    duration: float = 0

    @property
    def main_span(self) -> Span:
        return self.spans[0].span

    @property
    def span_count(self) -> int:
        return len(self.spans)

    @property
    def has_error(self) -> bool:
        return any(flat.span.is_error for flat in self.spans)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "start_time": self.start_time,
            "duration": self.duration,
            "span_count": self.span_count,
            "has_error": self.has_error,
            "spans": [flat.to_dict() for flat in self.spans],
        }


@dataclass
class SpanPage:
    """One page answered by a span source."""

    spans: list[Span]
    # Cursor the page was requested with
    cursor: Optional[int] = None
    # None when the source reports no further data
    next_cursor: Optional[int] = None
    # Rows the source returned before malformed ones were dropped
    row_count: int = 0
    trace_key: Optional[str] = None

    def __len__(self) -> int:
        return len(self.spans)
