"""Domain models for analyzed speaking sessions.

Every entity is a frozen dataclass; derived values are produced with
``dataclasses.replace`` and never by mutating an existing instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any


class TagKind(StrEnum):
    """Closed set of classifications attached to segments and tokens."""

    FILLER = "filler"
    FAST = "fast"
    SLOW = "slow"
    LONG_PAUSE = "long_pause"
    HEDGING = "hedging"
    COMPLEX_SENTENCE = "complex_sentence"
    UNCLEAR_POINT = "unclear_point"
    GOOD_EMPHASIS = "good_emphasis"
    STRUCTURE = "structure"


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SegmentKind(StrEnum):
    SPEECH = "speech"
    PAUSE = "pause"


class SessionMode(StrEnum):
    PRACTICE = "practice"
    LIVE = "live"


class SessionContext(StrEnum):
    PITCH = "pitch"
    INTERVIEW = "interview"
    MEETING = "meeting"
    EXAM = "exam"
    LANGUAGE_PRACTICE = "language_practice"
    OTHER = "other"


class AnalysisStatus(StrEnum):
    """Internal analysis lifecycle: pending -> processing -> ready | failed."""

    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


class RemoteStatus(StrEnum):
    """Status vocabulary used by the remote conversation backend."""

    RECORDING = "recording"
    PROCESSING = "processing"
    FINISHED = "finished"


@dataclass(frozen=True)
class Tag:
    """A classification attached to a segment or a token."""

    id: str
    kind: TagKind
    severity: Severity = Severity.LOW
    label: str = ""
    data: Any = None


@dataclass(frozen=True)
class Token:
    """A single timestamped word.  ``end_ms >= start_ms``."""

    id: str
    start_ms: float
    end_ms: float
    text: str
    tags: tuple[Tag, ...] = ()


@dataclass(frozen=True)
class Segment:
    """A contiguous speech or pause span.

    Tokens are in reading order, which is also temporal order.  Pause
    segments never carry tokens.
    """

    id: str
    start_ms: float
    end_ms: float
    kind: SegmentKind
    text: str = ""
    tokens: tuple[Token, ...] = ()
    tags: tuple[Tag, ...] = ()

    @property
    def is_pause(self) -> bool:
        return self.kind is SegmentKind.PAUSE

    @property
    def midpoint_ms(self) -> float:
        return self.start_ms + (self.end_ms - self.start_ms) / 2

    def has_tag(self, kind: TagKind) -> bool:
        return any(t.kind is kind for t in self.tags)


@dataclass(frozen=True)
class MetricsSummary:
    """Summary metrics for a session.

    The heart rate, movement and stress fields come from wearables and are
    never recomputed.
    """

    duration_sec: float = 0.0
    total_words: int = 0
    avg_wpm: float = 0.0
    filler_count: int = 0
    filler_per_minute: float = 0.0
    avg_heart_rate: float | None = None
    peak_heart_rate: float | None = None
    movement_score: float | None = None  # 0-1 normalized
    stress_speed_index: float | None = None


@dataclass(frozen=True)
class Issue:
    """A coaching finding reported by the analysis backend."""

    id: str
    kind: str  # "filler_cluster", "fast_segment", "long_pause", ...
    severity: Severity
    message: str
    segment_ids: tuple[str, ...] = ()
    token_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Analysis:
    """Full analysis payload attached to a ready session."""

    segments: tuple[Segment, ...] = ()
    metrics: MetricsSummary = MetricsSummary()
    issues: tuple[Issue, ...] = ()
    title: str | None = None
    coaching_highlights: tuple[str, ...] = ()
    analysis_timing: dict[str, Any] | None = None


@dataclass(frozen=True)
class Session:
    """Aggregate root for one recorded or live speaking session."""

    id: str
    user_id: str
    title: str
    mode: SessionMode
    context: SessionContext
    created_at: datetime
    analysis_status: AnalysisStatus
    started_at: datetime | None = None
    ended_at: datetime | None = None
    duration_sec: float = 0.0
    audio_url: str | None = None
    analysis: Analysis | None = None


@dataclass(frozen=True)
class ConversationRecord:
    """One entry of the remote conversation list."""

    id: str
    timestamp: float  # unix seconds
    status: str  # raw remote status; mapped by the reconciler
