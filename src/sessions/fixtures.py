"""Local fixture sessions used when the backend is unreachable or empty.

The reported metrics below are intentionally the rough numbers a coach would
have typed in; the reconciler recomputes them from the segments.
"""

from __future__ import annotations

from datetime import UTC, datetime

from src.sessions.models import (
    Analysis,
    AnalysisStatus,
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


def timed_tokens(
    text: str,
    start_ms: float,
    end_ms: float,
    prefix: str,
    tagged: dict[int, tuple[Tag, ...]] | None = None,
) -> tuple[Token, ...]:
    """Split *text* into tokens spread evenly across ``[start_ms, end_ms]``.

    Args:
        text: Whitespace-separated words.
        start_ms: Start of the owning segment.
        end_ms: End of the owning segment; the last token always ends here.
        prefix: Token id prefix; ids are ``f"{prefix}{n}"`` starting at 1.
        tagged: Optional mapping of zero-based word index to tags.

    Returns:
        Tokens in reading order.
    """
    words = text.split()
    tagged = tagged or {}
    step = (end_ms - start_ms) / max(len(words), 1)
    tokens: list[Token] = []
    for i, word in enumerate(words):
        tok_start = round(start_ms + i * step)
        tok_end = end_ms if i == len(words) - 1 else round(start_ms + (i + 1) * step)
        tokens.append(
            Token(
                id=f"{prefix}{i + 1}",
                start_ms=tok_start,
                end_ms=tok_end,
                text=word,
                tags=tagged.get(i, ()),
            )
        )
    return tuple(tokens)


def _speech(
    seg_id: str,
    start_ms: float,
    end_ms: float,
    text: str,
    tags: tuple[Tag, ...] = (),
    tagged: dict[int, tuple[Tag, ...]] | None = None,
) -> Segment:
    return Segment(
        id=seg_id,
        start_ms=start_ms,
        end_ms=end_ms,
        kind=SegmentKind.SPEECH,
        text=text,
        tokens=timed_tokens(text, start_ms, end_ms, prefix=f"{seg_id}-tok-", tagged=tagged),
        tags=tags,
    )


def _pause(seg_id: str, start_ms: float, end_ms: float, tags: tuple[Tag, ...] = ()) -> Segment:
    return Segment(id=seg_id, start_ms=start_ms, end_ms=end_ms, kind=SegmentKind.PAUSE, tags=tags)


def _filler(tag_id: str, word: str) -> tuple[Tag, ...]:
    return (Tag(tag_id, TagKind.FILLER, Severity.MEDIUM, f"Filler word: '{word}'"),)


_PITCH = Session(
    id="session-1-pitch",
    user_id="user-1",
    title="Investor pitch - AI speech coach vision",
    mode=SessionMode.PRACTICE,
    context=SessionContext.PITCH,
    created_at=datetime(2025, 1, 15, 10, 30, tzinfo=UTC),
    started_at=datetime(2025, 1, 15, 10, 30, tzinfo=UTC),
    ended_at=datetime(2025, 1, 15, 10, 31, 34, tzinfo=UTC),
    duration_sec=94,
    audio_url="https://example.com/audio/session-1-pitch.mp3",
    analysis_status=AnalysisStatus.READY,
    analysis=Analysis(
        segments=(
            _speech(
                "s1-seg-1",
                0,
                14000,
                "Hi everyone I am Tobias co-founder of PulseSpeak and today I will show you "
                "how we blend audio physiology and motion into effortless speaking coaching",
                tags=(Tag("s1-seg-1-structure", TagKind.STRUCTURE, Severity.LOW, "Clear opening with a roadmap."),),
            ),
            _pause(
                "s1-seg-2",
                14000,
                17000,
                tags=(
                    Tag(
                        "s1-seg-2-long-pause",
                        TagKind.LONG_PAUSE,
                        Severity.LOW,
                        "Pause after intro; slightly long at ~3s.",
                        {"durationMs": 3000},
                    ),
                ),
            ),
            _speech(
                "s1-seg-3",
                17000,
                42000,
                "So um the data we capture is like words pace heart rate and movement and "
                "we um line all of it up on one timeline so you can see exactly where the "
                "pressure shows up in your voice",
                tags=(
                    Tag("s1-seg-3-fast", TagKind.FAST, Severity.HIGH, "Segment spoken ~190 WPM vs target 150."),
                    Tag("s1-seg-3-filler", TagKind.FILLER, Severity.MEDIUM, "Cluster of fillers while describing data capture."),
                ),
                tagged={
                    1: _filler("s1-tag-3-um-1", "um"),
                    7: _filler("s1-tag-3-like", "like"),
                    16: _filler("s1-tag-3-um-2", "um"),
                },
            ),
            _pause(
                "s1-seg-4",
                42000,
                47000,
                tags=(
                    Tag(
                        "s1-seg-4-long-pause",
                        TagKind.LONG_PAUSE,
                        Severity.LOW,
                        "Short reset before demo section.",
                        {"durationMs": 5000},
                    ),
                ),
            ),
            _speech(
                "s1-seg-5",
                47000,
                72000,
                "Teams using the pilot cut their filler rate by forty percent in three weeks "
                "and their pace settled inside the target band for most of the talk",
                tags=(Tag("s1-seg-5-emphasis", TagKind.GOOD_EMPHASIS, Severity.LOW, "Specific outcomes with percentages."),),
            ),
            _speech(
                "s1-seg-6",
                72000,
                94000,
                "We sort of maybe think the pricing could work per seat but we are still "
                "figuring out whether schools or companies will pay for it first",
                tags=(
                    Tag("s1-seg-6-hedging", TagKind.HEDGING, Severity.MEDIUM, "Hedging phrase 'sort of maybe'."),
                    Tag("s1-seg-6-structure", TagKind.STRUCTURE, Severity.MEDIUM, "Closing call-to-action could be more explicit."),
                ),
            ),
        ),
        metrics=MetricsSummary(
            duration_sec=94,
            total_words=110,
            avg_wpm=157,
            filler_count=4,
            filler_per_minute=2.5,
            avg_heart_rate=108,
            peak_heart_rate=128,
            movement_score=0.68,
            stress_speed_index=0.66,
        ),
        issues=(
            Issue(
                "s1-issue-1-filler-cluster",
                "filler_cluster",
                Severity.MEDIUM,
                "Fillers cluster while you explain the data you capture. Pause instead of 'um'.",
                ("s1-seg-3",),
            ),
            Issue(
                "s1-issue-2-fast-segment",
                "fast_segment",
                Severity.HIGH,
                "You rush the data capture explanation at ~190 WPM.",
                ("s1-seg-3",),
            ),
            Issue(
                "s1-issue-3-hedging",
                "hedging",
                Severity.MEDIUM,
                "Hedging on pricing undercuts confidence. State the model directly.",
                ("s1-seg-6",),
            ),
            Issue(
                "s1-issue-4-structure",
                "structure",
                Severity.LOW,
                "End with a concrete ask.",
                ("s1-seg-6",),
            ),
        ),
    ),
)

_INTERVIEW = Session(
    id="session-2-interview",
    user_id="user-1",
    title="Mock interview - product manager behavioral round",
    mode=SessionMode.PRACTICE,
    context=SessionContext.INTERVIEW,
    created_at=datetime(2025, 1, 18, 16, 5, tzinfo=UTC),
    started_at=datetime(2025, 1, 18, 16, 5, tzinfo=UTC),
    ended_at=datetime(2025, 1, 18, 16, 6, 2, tzinfo=UTC),
    duration_sec=62,
    audio_url=None,
    analysis_status=AnalysisStatus.READY,
    analysis=Analysis(
        segments=(
            _speech(
                "s2-seg-1",
                0,
                16000,
                "In my last role I led the launch of a scheduling feature that had been "
                "stuck for two quarters",
                tags=(Tag("s2-seg-1-structure", TagKind.STRUCTURE, Severity.LOW, "Situation stated up front."),),
            ),
            _speech(
                "s2-seg-2",
                16000,
                38000,
                "Basically what happened was that engineering and design and sales all "
                "had different ideas of what done meant and uh nobody owned the decision",
                tags=(
                    Tag("s2-seg-2-complex", TagKind.COMPLEX_SENTENCE, Severity.MEDIUM, "Long chained sentence."),
                    Tag("s2-seg-2-slow", TagKind.SLOW, Severity.LOW, "Pace drops to ~110 WPM."),
                ),
                tagged={19: _filler("s2-tag-2-uh", "uh")},
            ),
            _pause(
                "s2-seg-3",
                38000,
                42000,
                tags=(
                    Tag(
                        "s2-seg-3-long-pause",
                        TagKind.LONG_PAUSE,
                        Severity.MEDIUM,
                        "Four second pause before the action.",
                        {"durationMs": 4000},
                    ),
                ),
            ),
            _speech(
                "s2-seg-4",
                42000,
                62000,
                "I wrote a one page definition of done got sign off in a single meeting "
                "and we shipped six weeks later",
                tags=(
                    Tag("s2-seg-4-emphasis", TagKind.GOOD_EMPHASIS, Severity.LOW, "Concrete result with a timeline."),
                    Tag("s2-seg-4-unclear", TagKind.UNCLEAR_POINT, Severity.LOW, "Impact on users not stated."),
                ),
            ),
        ),
        metrics=MetricsSummary(
            duration_sec=62,
            total_words=60,
            avg_wpm=58,
            filler_count=1,
            filler_per_minute=1.0,
            avg_heart_rate=96,
            peak_heart_rate=112,
            movement_score=0.41,
            stress_speed_index=0.52,
        ),
        issues=(
            Issue(
                "s2-issue-1-clarity",
                "clarity",
                Severity.LOW,
                "Close the story with the impact on users.",
                ("s2-seg-4",),
            ),
            Issue(
                "s2-issue-2-long-pause",
                "long_pause",
                Severity.MEDIUM,
                "The pause before your action reads as hesitation.",
                ("s2-seg-3",),
            ),
        ),
    ),
)

FIXTURE_SESSIONS: tuple[Session, ...] = (_PITCH, _INTERVIEW)

