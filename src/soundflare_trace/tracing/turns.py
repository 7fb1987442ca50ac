"""
Conversation turn segmentation.

Walks the flattened span sequence and cuts it into turns at sentinel spans
(user_turn, assistant_turn, start_agent_activity, drain_agent_activity).
Each turn runs from its sentinel up to, not including, the next one.
"""

from typing import Iterable, Optional

from ..models import ConversationTurn, FlatSpan, Span, TurnType
from ..utils.logger import debug

# Sentinel span name -> type of the turn it opens
SENTINEL_TURN_TYPES = {
    "user_turn": TurnType.USER_TURN,
    "assistant_turn": TurnType.ASSISTANT_TURN,
    "start_agent_activity": TurnType.SESSION_MANAGEMENT,
    "drain_agent_activity": TurnType.SESSION_MANAGEMENT,
}

SENTINEL_NAMES = frozenset(SENTINEL_TURN_TYPES)


def _normalized_name(span: Span) -> str:
    return (span.name or "").lower()


def is_sentinel(span: Span) -> bool:
    return _normalized_name(span) in SENTINEL_NAMES


def turn_type_for(span: Span) -> TurnType:
    return SENTINEL_TURN_TYPES.get(_normalized_name(span), TurnType.SESSION_MANAGEMENT)


def turn_title_for(span: Span) -> str:
    name = _normalized_name(span)
    if name in SENTINEL_NAMES:
        return name
    return span.name or "Unknown"


class TurnSegmenter:
    """Groups flattened spans into conversation turns.

    Single pass over the sequence with one accumulator. Spans seen before
    the first sentinel have no home turn and are left out of the turn view.
    Turn duration is the sum of member duration_ms (missing counts as 0),
    not wall-clock time.
    """

    def segment(self, flat_spans: Iterable[FlatSpan]) -> list[ConversationTurn]:
        turns: list[ConversationTurn] = []
        current: list[FlatSpan] = []
        dropped = 0

        for flat in flat_spans:
            if is_sentinel(flat.span):
                if current:
                    turns.append(self._close_turn(current, len(turns) + 1))
                current = [flat]
            elif current:
                current.append(flat)
            else:
                dropped += 1

        if current:
            turns.append(self._close_turn(current, len(turns) + 1))

        if dropped:
            debug(f"{dropped} span(s) precede the first sentinel and belong to no turn")

        return turns

    def _close_turn(self, members: list[FlatSpan], ordinal: int) -> ConversationTurn:
        sentinel = members[0].span
        turn_type = turn_type_for(sentinel)

        return ConversationTurn(
            id=f"turn-{ordinal}-{turn_type.value}",
            type=turn_type,
            title=turn_title_for(sentinel),
            spans=list(members),
            start_time=_earliest_time(members),
            duration=sum(flat.span.duration_ms or 0 for flat in members),
        )


def _earliest_time(members: list[FlatSpan]) -> float:
    times = [flat.span.sort_time for flat in members if flat.span.sort_time > 0]
    return min(times) if times else 0


def segment_turns(flat_spans: Iterable[FlatSpan]) -> list[ConversationTurn]:
    return TurnSegmenter().segment(flat_spans)


def find_turn(turns: list[ConversationTurn], span_id: str) -> Optional[ConversationTurn]:
    """Return the turn containing the span with storage id `span_id`."""
    for turn in turns:
        if any(flat.span.id == span_id for flat in turn.spans):
            return turn
    return None
