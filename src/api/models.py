"""Pydantic response schemas for the session analytics API."""

from __future__ import annotations

from pydantic import BaseModel

from src.analytics.insights import Insight
from src.analytics.timeline import EventGroup, EventPoint, PaceState, StructureState
from src.sessions.models import Issue, MetricsSummary


class EventGroupResponse(BaseModel):
    """A cluster of timeline events drawn as one marker (``size`` drives the "+N" badge)."""

    start_ms: float
    position_pct: float
    size: int
    has_filler: bool
    has_high_severity: bool
    events: list[EventPoint]

    @classmethod
    def from_group(cls, group: EventGroup) -> EventGroupResponse:
        return cls(
            start_ms=group.start_ms,
            position_pct=group.position_pct,
            size=group.size,
            has_filler=group.has_filler,
            has_high_severity=group.has_high_severity,
            events=list(group.events),
        )


class SegmentBand(BaseModel):
    """Continuous pace / structure classification of one segment."""

    segment_id: str
    start_ms: float
    end_ms: float
    pace: PaceState
    structure: StructureState


class TimelineResponse(BaseModel):
    """Response body for the /api/sessions/{id}/timeline endpoint."""

    session_id: str
    total_duration_ms: float
    groups: list[EventGroupResponse] = []
    bands: list[SegmentBand] = []


class InsightsResponse(BaseModel):
    """Response body for the /api/sessions/{id}/insights endpoint."""

    session_id: str
    metrics: MetricsSummary
    insights: list[Insight]
    focus_cues: list[Issue]
