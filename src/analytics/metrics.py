"""Metrics derivation: recompute session metrics from segment and token data.

Metrics reported by the backend and the segment-level ground truth can
disagree (different computation paths, partial updates), so every session
leaving the reconciler goes through :func:`with_derived_metrics`.  The
function is pure and idempotent.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import replace

from src.sessions.models import Segment, Session, TagKind


def count_words(segment: Segment) -> int:
    """Pause segments have no words; speech segments count tokens, else text words."""
    if segment.is_pause:
        return 0
    if segment.tokens:
        return len(segment.tokens)
    return len(segment.text.split())


def count_fillers(segment: Segment) -> int:
    """Count token-level filler tags.

    Segment-level filler tags only drive timeline events and are not counted.
    """
    if segment.is_pause:
        return 0
    return sum(1 for token in segment.tokens for tag in token.tags if tag.kind is TagKind.FILLER)


def compute_duration_sec(segments: Sequence[Segment], fallback: float = 0.0) -> float:
    """Span from the earliest segment start to the latest segment end, in seconds.

    Falls back to *fallback* when there are no segments or the span is not a
    positive finite number.
    """
    if not segments:
        return fallback
    min_start = min(s.start_ms for s in segments)
    max_end = max(s.end_ms for s in segments)
    duration = (max_end - min_start) / 1000
    if not math.isfinite(duration) or duration <= 0:
        return fallback
    return duration


def per_minute(count: float, duration_sec: float) -> float:
    return count / duration_sec * 60 if duration_sec > 0 else 0.0


def with_derived_metrics(session: Session) -> Session:
    """Return a copy of *session* with duration and speech metrics recomputed.

    Heart rate, movement and stress fields pass through untouched, as does
    everything outside ``analysis.metrics`` except ``duration_sec``.
    Sessions without an analysis are returned as-is.
    """
    if session.analysis is None:
        return session

    segments = session.analysis.segments
    duration_sec = compute_duration_sec(segments, fallback=session.duration_sec or 0.0)
    total_words = sum(count_words(s) for s in segments)
    filler_count = sum(count_fillers(s) for s in segments)

    metrics = replace(
        session.analysis.metrics,
        duration_sec=duration_sec,
        total_words=total_words,
        avg_wpm=per_minute(total_words, duration_sec),
        filler_count=filler_count,
        filler_per_minute=per_minute(filler_count, duration_sec),
    )
    return replace(
        session,
        duration_sec=duration_sec,
        analysis=replace(session.analysis, metrics=metrics),
    )
