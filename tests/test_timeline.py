"""Tests for timeline event extraction, grouping, and pace / structure bands."""

from __future__ import annotations

import pytest

from src.analytics.timeline import (
    EventKind,
    EventPoint,
    PaceState,
    StructureState,
    build_timeline,
    extract_events,
    group_events,
    pace_state,
    structure_state,
    total_duration_ms,
)
from src.sessions.fixtures import FIXTURE_SESSIONS, timed_tokens
from src.sessions.models import Segment, SegmentKind, Severity, Tag, TagKind

TEN_WORDS = "so um this is how we measure pace in practice"


def _tag(kind: TagKind, severity: Severity = Severity.LOW, tag_id: str | None = None) -> Tag:
    return Tag(tag_id or f"tag-{kind.value}", kind, severity, kind.value.replace("_", " "))


def _event(event_id: str, time_ms: float, kind: EventKind = EventKind.FILLER) -> EventPoint:
    return EventPoint(event_id, time_ms, kind, Severity.LOW, "label", "seg")


def _scenario_segments() -> tuple[Segment, ...]:
    return (
        Segment("p-1", 0, 3000, SegmentKind.PAUSE, tags=(_tag(TagKind.LONG_PAUSE),)),
        Segment(
            "sp-1",
            3000,
            13000,
            SegmentKind.SPEECH,
            text=TEN_WORDS,
            tokens=timed_tokens(TEN_WORDS, 3000, 13000, prefix="sp-1-tok-", tagged={1: (_tag(TagKind.FILLER),)}),
        ),
    )


class TestExtractEvents:
    def test_scenario(self) -> None:
        events = extract_events(_scenario_segments())
        assert [(e.kind, e.time_ms) for e in events] == [
            (EventKind.PAUSE, 0),
            (EventKind.FILLER, 4000),
        ]
        assert events[0].segment_id == "p-1"
        assert events[1].segment_id == "sp-1"
        assert events[1].id == "sp-1-tok-2-tag-filler"

    def test_segment_tags_at_midpoint(self) -> None:
        seg = Segment(
            "s",
            1000,
            5000,
            SegmentKind.SPEECH,
            text="well maybe",
            tags=(
                _tag(TagKind.HEDGING),
                _tag(TagKind.UNCLEAR_POINT),
                _tag(TagKind.COMPLEX_SENTENCE),
                _tag(TagKind.GOOD_EMPHASIS),
                _tag(TagKind.FILLER),
            ),
        )
        events = extract_events((seg,))
        assert [e.kind for e in events] == [
            EventKind.HEDGING,
            EventKind.UNCLEAR,
            EventKind.COMPLEX,
            EventKind.EMPHASIS,
            EventKind.FILLER,
        ]
        assert all(e.time_ms == 3000 for e in events)

    def test_band_tags_produce_no_events(self) -> None:
        seg = Segment(
            "s",
            0,
            4000,
            SegmentKind.SPEECH,
            text="fast talk",
            tags=(_tag(TagKind.FAST), _tag(TagKind.SLOW), _tag(TagKind.STRUCTURE)),
        )
        assert extract_events((seg,)) == []

    def test_pause_without_long_pause_tag(self) -> None:
        assert extract_events((Segment("p", 0, 2000, SegmentKind.PAUSE),)) == []

    def test_severity_and_label_carried(self) -> None:
        seg = Segment(
            "p",
            0,
            2000,
            SegmentKind.PAUSE,
            tags=(Tag("lp", TagKind.LONG_PAUSE, Severity.HIGH, "Five second silence"),),
        )
        (event,) = extract_events((seg,))
        assert event.severity is Severity.HIGH
        assert event.label == "Five second silence"

    def test_zero_duration_yields_no_events(self) -> None:
        seg = Segment("s", 0, 0, SegmentKind.SPEECH, tags=(_tag(TagKind.HEDGING),))
        assert extract_events((seg,)) == []

    def test_empty(self) -> None:
        assert extract_events(()) == []


class TestGroupEvents:
    def test_close_events_grouped(self) -> None:
        """1.5% of the timeline apart -> one group of two."""
        groups = group_events([_event("a", 1000), _event("b", 1150)], total_ms=10000)
        assert len(groups) == 1
        assert groups[0].size == 2

    def test_distant_events_split(self) -> None:
        """2.5% of the timeline apart -> two groups of one."""
        groups = group_events([_event("a", 1000), _event("b", 1250)], total_ms=10000)
        assert [g.size for g in groups] == [1, 1]

    def test_threshold_boundary_starts_new_group(self) -> None:
        groups = group_events([_event("a", 0), _event("b", 200)], total_ms=10000)
        assert len(groups) == 2

    def test_gap_measured_from_last_event_in_group(self) -> None:
        # each step is 1.5%, so the chain keeps growing although it spans 4.5%
        events = [_event(str(i), i * 150) for i in range(4)]
        groups = group_events(events, total_ms=10000)
        assert len(groups) == 1
        assert groups[0].size == 4

    def test_custom_threshold(self) -> None:
        events = [_event("a", 1000), _event("b", 1250)]
        assert len(group_events(events, total_ms=10000, threshold_pct=5.0)) == 1

    def test_sorted_and_stable(self) -> None:
        events = [_event("late", 9000), _event("tie-1", 1000), _event("tie-2", 1000), _event("early", 500)]
        groups = group_events(events, total_ms=10000)
        flat = [e.id for g in groups for e in g.events]
        assert flat == ["early", "tie-1", "tie-2", "late"]
        assert group_events(events, total_ms=10000) == groups

    def test_partition_without_loss_or_duplication(self) -> None:
        events = [_event(f"e{i}", t) for i, t in enumerate([0, 50, 900, 2400, 2410, 7000, 9990])]
        groups = group_events(events, total_ms=10000)
        flat = [e for g in groups for e in g.events]
        assert sorted(e.id for e in flat) == sorted(e.id for e in events)
        assert len(flat) == len(events)

    def test_group_properties(self) -> None:
        high = EventPoint("h", 5000, EventKind.HEDGING, Severity.HIGH, "hedge", "seg")
        groups = group_events([_event("f", 4900), high], total_ms=10000)
        (group,) = groups
        assert group.start_ms == 4900
        assert group.position_pct == pytest.approx(49.0)
        assert group.has_filler
        assert group.has_high_severity

    def test_zero_duration(self) -> None:
        assert group_events([_event("a", 0)], total_ms=0) == []

    def test_no_events(self) -> None:
        assert group_events([], total_ms=10000) == []


class TestBuildTimeline:
    def test_scenario(self) -> None:
        groups = build_timeline(_scenario_segments())
        assert [[e.kind for e in g.events] for g in groups] == [[EventKind.PAUSE], [EventKind.FILLER]]

    def test_empty_segments(self) -> None:
        assert build_timeline(()) == []

    def test_total_duration_is_last_segment_end(self) -> None:
        assert total_duration_ms(_scenario_segments()) == 13000
        assert total_duration_ms(()) == 0

    def test_fixture_timeline_is_chronological(self) -> None:
        for session in FIXTURE_SESSIONS:
            assert session.analysis is not None
            segments = session.analysis.segments
            groups = build_timeline(segments)
            times = [e.time_ms for g in groups for e in g.events]
            assert times == sorted(times)
            assert sum(g.size for g in groups) == len(extract_events(segments))


class TestBands:
    def test_pace_state(self) -> None:
        assert pace_state(Segment("p", 0, 1, SegmentKind.PAUSE)) is PaceState.PAUSE
        assert pace_state(Segment("s", 0, 1, SegmentKind.SPEECH, tags=(_tag(TagKind.FAST),))) is PaceState.FAST
        assert pace_state(Segment("s", 0, 1, SegmentKind.SPEECH, tags=(_tag(TagKind.SLOW),))) is PaceState.SLOW
        assert pace_state(Segment("s", 0, 1, SegmentKind.SPEECH)) is PaceState.NORMAL

    def test_fast_wins_over_slow(self) -> None:
        seg = Segment("s", 0, 1, SegmentKind.SPEECH, tags=(_tag(TagKind.SLOW), _tag(TagKind.FAST)))
        assert pace_state(seg) is PaceState.FAST

    def test_structure_state(self) -> None:
        def speech(*kinds: TagKind) -> Segment:
            return Segment("s", 0, 1, SegmentKind.SPEECH, tags=tuple(_tag(k) for k in kinds))

        assert structure_state(Segment("p", 0, 1, SegmentKind.PAUSE)) is StructureState.PAUSE
        assert structure_state(speech(TagKind.STRUCTURE)) is StructureState.STRONG
        assert structure_state(speech(TagKind.GOOD_EMPHASIS, TagKind.HEDGING)) is StructureState.STRONG
        assert structure_state(speech(TagKind.HEDGING)) is StructureState.WEAK
        assert structure_state(speech(TagKind.UNCLEAR_POINT)) is StructureState.WEAK
        assert structure_state(speech(TagKind.FILLER)) is StructureState.NEUTRAL
