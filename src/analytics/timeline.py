"""Timeline event aggregation for dense visual display.

Segment- and token-level tags are flattened into point events, sorted by time
and merged into display groups when they sit closer together than a fixed
percentage of the session's length.  Pace (fast / slow) and structure tags
are continuous bands rather than point events; :func:`pace_state` and
:func:`structure_state` classify a segment for those bands.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from src.sessions.models import Segment, Severity, TagKind

DEFAULT_GROUP_THRESHOLD_PCT = 2.0


class EventKind(StrEnum):
    FILLER = "filler"
    PAUSE = "pause"
    HEDGING = "hedging"
    EMPHASIS = "emphasis"
    UNCLEAR = "unclear"
    COMPLEX = "complex"


class PaceState(StrEnum):
    FAST = "fast"
    NORMAL = "normal"
    SLOW = "slow"
    PAUSE = "pause"


class StructureState(StrEnum):
    STRONG = "strong"
    NEUTRAL = "neutral"
    WEAK = "weak"
    PAUSE = "pause"


# Segment-level tag kinds that become midpoint events
_SEGMENT_EVENT_KINDS: dict[TagKind, EventKind] = {
    TagKind.FILLER: EventKind.FILLER,
    TagKind.HEDGING: EventKind.HEDGING,
    TagKind.UNCLEAR_POINT: EventKind.UNCLEAR,
    TagKind.COMPLEX_SENTENCE: EventKind.COMPLEX,
    TagKind.GOOD_EMPHASIS: EventKind.EMPHASIS,
}


@dataclass(frozen=True)
class EventPoint:
    """A timeline-relevant instant derived from a tag."""

    id: str
    time_ms: float
    kind: EventKind
    severity: Severity
    label: str
    segment_id: str


@dataclass(frozen=True)
class EventGroup:
    """Events close enough together to be drawn as one marker."""

    events: tuple[EventPoint, ...]
    position_pct: float  # first event's position on the timeline, 0-100

    @property
    def start_ms(self) -> float:
        return self.events[0].time_ms

    @property
    def size(self) -> int:
        return len(self.events)

    @property
    def has_filler(self) -> bool:
        return any(e.kind is EventKind.FILLER for e in self.events)

    @property
    def has_high_severity(self) -> bool:
        return any(e.severity is Severity.HIGH for e in self.events)


def total_duration_ms(segments: Sequence[Segment]) -> float:
    """The timeline spans from 0 to the final segment's end."""
    return segments[-1].end_ms if segments else 0.0


def extract_events(segments: Sequence[Segment]) -> list[EventPoint]:
    """Flatten segment and token tags into point events (unsorted, extraction order)."""
    if not total_duration_ms(segments):
        return []

    events: list[EventPoint] = []
    for segment in segments:
        if segment.is_pause:
            pause_tag = next((t for t in segment.tags if t.kind is TagKind.LONG_PAUSE), None)
            if pause_tag is not None:
                events.append(
                    EventPoint(
                        id=f"{segment.id}-pause",
                        time_ms=segment.start_ms,
                        kind=EventKind.PAUSE,
                        severity=pause_tag.severity,
                        label=pause_tag.label,
                        segment_id=segment.id,
                    )
                )

        for tag in segment.tags:
            kind = _SEGMENT_EVENT_KINDS.get(tag.kind)
            if kind is None:
                continue
            events.append(
                EventPoint(
                    id=f"{segment.id}-{tag.id}",
                    time_ms=segment.midpoint_ms,
                    kind=kind,
                    severity=tag.severity,
                    label=tag.label,
                    segment_id=segment.id,
                )
            )

        for token in segment.tokens:
            for tag in token.tags:
                if tag.kind is TagKind.FILLER:
                    events.append(
                        EventPoint(
                            id=f"{token.id}-{tag.id}",
                            time_ms=token.start_ms,
                            kind=EventKind.FILLER,
                            severity=tag.severity,
                            label=tag.label,
                            segment_id=segment.id,
                        )
                    )
    return events


def group_events(
    events: Sequence[EventPoint],
    total_ms: float,
    threshold_pct: float = DEFAULT_GROUP_THRESHOLD_PCT,
) -> list[EventGroup]:
    """Merge near-simultaneous events into display groups.

    Events are stably sorted by time.  An event joins the current group when
    its gap to the group's last event, as a percentage of *total_ms*, is
    below *threshold_pct*; otherwise it starts a new group.

    Args:
        events: Event points in any order.
        total_ms: Total timeline duration used to normalize gaps.
        threshold_pct: Gap (in percent of the timeline) that splits groups.

    Returns:
        Groups in chronological order; together they contain every event once.
    """
    if total_ms <= 0 or not events:
        return []

    groups: list[list[EventPoint]] = []
    for event in sorted(events, key=lambda e: e.time_ms):
        if groups:
            gap_pct = (event.time_ms - groups[-1][-1].time_ms) / total_ms * 100
            if gap_pct < threshold_pct:
                groups[-1].append(event)
                continue
        groups.append([event])

    return [
        EventGroup(events=tuple(g), position_pct=g[0].time_ms / total_ms * 100)
        for g in groups
    ]


def build_timeline(
    segments: Sequence[Segment],
    threshold_pct: float = DEFAULT_GROUP_THRESHOLD_PCT,
) -> list[EventGroup]:
    """Extract and group the events of a segment sequence."""
    return group_events(extract_events(segments), total_duration_ms(segments), threshold_pct)


def pace_state(segment: Segment) -> PaceState:
    if segment.is_pause:
        return PaceState.PAUSE
    if segment.has_tag(TagKind.FAST):
        return PaceState.FAST
    if segment.has_tag(TagKind.SLOW):
        return PaceState.SLOW
    return PaceState.NORMAL


def structure_state(segment: Segment) -> StructureState:
    if segment.is_pause:
        return StructureState.PAUSE
    if segment.has_tag(TagKind.STRUCTURE) or segment.has_tag(TagKind.GOOD_EMPHASIS):
        return StructureState.STRONG
    if any(segment.has_tag(k) for k in (TagKind.HEDGING, TagKind.COMPLEX_SENTENCE, TagKind.UNCLEAR_POINT)):
        return StructureState.WEAK
    return StructureState.NEUTRAL
