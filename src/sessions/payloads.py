"""Pydantic schemas for backend payloads and their conversion to domain models.

This is the single normalization step for external data: optional fields are
defaulted here (missing tags -> empty, missing severity -> low, ...) so the
analytics code never has to re-check optionality.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from src.sessions.models import (
    Analysis,
    AnalysisStatus,
    ConversationRecord,
    Issue,
    MetricsSummary,
    Segment,
    SegmentKind,
    Session,
    SessionContext,
    SessionMode,
    Severity,
    Tag,
    TagKind,
    Token,
)

logger = logging.getLogger(__name__)

_TAG_KINDS = {k.value for k in TagKind}
_SEVERITIES = {s.value for s in Severity}
_ANALYSIS_STATUSES = {s.value for s in AnalysisStatus}


def _severity(raw: str | None) -> Severity:
    """Missing or unrecognized severities default to low."""
    return Severity(raw) if raw in _SEVERITIES else Severity.LOW


def _analysis_status(raw: str | None) -> AnalysisStatus:
    return AnalysisStatus(raw) if raw in _ANALYSIS_STATUSES else AnalysisStatus.PENDING


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TagPayload(_Payload):
    id: str
    kind: str
    severity: str | None = None
    label: str | None = None
    data: Any = None


class TokenPayload(_Payload):
    id: str
    start_ms: float
    end_ms: float
    text: str
    tags: list[TagPayload] | None = None

    @model_validator(mode="after")
    def _clamp_end(self) -> TokenPayload:
        if self.end_ms < self.start_ms:
            self.end_ms = self.start_ms
        return self


class SegmentPayload(_Payload):
    id: str
    start_ms: float
    end_ms: float
    kind: SegmentKind
    text: str | None = None
    tokens: list[TokenPayload] | None = None
    tags: list[TagPayload] | None = None


class MetricsPayload(_Payload):
    duration_sec: float = 0.0
    total_words: int = 0
    avg_wpm: float = 0.0
    filler_count: int = 0
    filler_per_minute: float = 0.0
    avg_heart_rate: float | None = None
    peak_heart_rate: float | None = None
    movement_score: float | None = None
    stress_speed_index: float | None = None


class IssuePayload(_Payload):
    id: str
    kind: str
    severity: str | None = None
    message: str = ""
    segment_ids: list[str] | None = None
    token_ids: list[str] | None = None


class AnalysisPayload(_Payload):
    title: str | None = None
    segments: list[SegmentPayload] = Field(default_factory=list)
    metrics: MetricsPayload | None = None
    issues: list[IssuePayload] | None = None
    coaching_highlights: list[str] | None = None
    analysis_timing: dict[str, Any] | None = None


class ConversationPayload(_Payload):
    id: str
    timestamp: float
    status: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> str:
        # null or non-string statuses map to pending downstream
        return value if isinstance(value, str) else ""


class SessionPayload(_Payload):
    id: str
    user_id: str | None = None
    title: str = ""
    mode: str | None = None
    context: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    ended_at: datetime | None = None
    duration_sec: float | None = None
    audio_url: str | None = None
    analysis_status: str | None = None
    analysis: AnalysisPayload | None = None


# ---------------------------------------------------------------------------
# Conversion to domain models
# ---------------------------------------------------------------------------


def _to_tags(payloads: list[TagPayload] | None) -> tuple[Tag, ...]:
    tags: list[Tag] = []
    for p in payloads or []:
        if p.kind not in _TAG_KINDS:
            logger.debug("Dropping tag %s with unknown kind %r", p.id, p.kind)
            continue
        tags.append(
            Tag(
                id=p.id,
                kind=TagKind(p.kind),
                severity=_severity(p.severity),
                label=p.label or p.kind,
                data=p.data,
            )
        )
    return tuple(tags)


def _to_token(p: TokenPayload) -> Token:
    return Token(id=p.id, start_ms=p.start_ms, end_ms=p.end_ms, text=p.text, tags=_to_tags(p.tags))


def _to_segment(p: SegmentPayload) -> Segment:
    tokens: tuple[Token, ...] = ()
    if p.kind is SegmentKind.SPEECH:
        tokens = tuple(_to_token(t) for t in p.tokens or [])
    return Segment(
        id=p.id,
        start_ms=p.start_ms,
        end_ms=p.end_ms,
        kind=p.kind,
        text=p.text or "",
        tokens=tokens,
        tags=_to_tags(p.tags),
    )


def _to_metrics(p: MetricsPayload | None) -> MetricsSummary:
    if p is None:
        return MetricsSummary()
    return MetricsSummary(**p.model_dump())


def _to_issue(p: IssuePayload) -> Issue:
    return Issue(
        id=p.id,
        kind=p.kind,
        severity=_severity(p.severity),
        message=p.message,
        segment_ids=tuple(p.segment_ids or []),
        token_ids=tuple(p.token_ids or []),
    )


def _to_analysis(p: AnalysisPayload) -> Analysis:
    segments = sorted((_to_segment(s) for s in p.segments), key=lambda s: s.start_ms)
    return Analysis(
        segments=tuple(segments),
        metrics=_to_metrics(p.metrics),
        issues=tuple(_to_issue(i) for i in p.issues or []),
        title=p.title or None,
        coaching_highlights=tuple(p.coaching_highlights or []),
        analysis_timing=p.analysis_timing,
    )


def parse_analysis(payload: dict[str, Any]) -> Analysis:
    """Validate a raw analysis payload and convert it to an :class:`Analysis`.

    Raises:
        pydantic.ValidationError: If required fields are missing or mistyped.
    """
    return _to_analysis(AnalysisPayload.model_validate(payload))


def parse_conversations(payload: list[Any] | dict[str, Any]) -> list[ConversationRecord]:
    """Parse the remote conversation list.

    Accepts either a bare JSON list or an object with a ``conversations`` key.
    """
    items = payload.get("conversations", []) if isinstance(payload, dict) else payload
    return [
        ConversationRecord(id=c.id, timestamp=c.timestamp, status=c.status)
        for c in (ConversationPayload.model_validate(item) for item in items)
    ]


def parse_session(payload: dict[str, Any]) -> Session:
    """Parse a full session payload (live-session endpoint)."""
    p = SessionPayload.model_validate(payload)
    mode = p.mode if p.mode in {m.value for m in SessionMode} else SessionMode.PRACTICE
    context = p.context if p.context in {c.value for c in SessionContext} else SessionContext.OTHER
    created_at = p.created_at if p.created_at.tzinfo else p.created_at.replace(tzinfo=UTC)
    return Session(
        id=p.id,
        user_id=p.user_id or "user-live",
        title=p.title,
        mode=SessionMode(mode),
        context=SessionContext(context),
        created_at=created_at,
        started_at=p.started_at,
        ended_at=p.ended_at,
        duration_sec=p.duration_sec or 0.0,
        audio_url=p.audio_url,
        analysis_status=_analysis_status(p.analysis_status),
        analysis=_to_analysis(p.analysis) if p.analysis else None,
    )
