"""Insight cards derived from a session's summary metrics."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from src.sessions.models import MetricsSummary

PACE_BAND_WPM = (140.0, 160.0)
PACE_RISK_MARGIN_WPM = 15.0
FILLER_CAUTION_PER_MIN = 2.0
FILLER_RISK_PER_MIN = 4.0
CALM_CAUTION = 0.55
CALM_RISK = 0.7
NEUTRAL_STRESS_INDEX = 0.5


class Tone(StrEnum):
    POSITIVE = "positive"
    CAUTION = "caution"
    RISK = "risk"


@dataclass(frozen=True)
class Insight:
    title: str
    value: str
    detail: str
    tone: Tone


def _pace_insight(avg_wpm: float) -> Insight:
    low, high = PACE_BAND_WPM
    if avg_wpm > high + PACE_RISK_MARGIN_WPM:
        tone = Tone.RISK
    elif avg_wpm > high or avg_wpm < low:
        tone = Tone.CAUTION
    else:
        tone = Tone.POSITIVE

    if avg_wpm > high:
        detail = "Above target band. Build in brief pauses to lower pace."
    elif avg_wpm < low:
        detail = "Below target band. Tighten phrasing to keep attention."
    else:
        detail = "In a healthy band. Maintain this cadence."
    return Insight("Pace window", f"{avg_wpm:.0f} WPM", detail, tone)


def _filler_insight(filler_per_minute: float) -> Insight:
    if filler_per_minute > FILLER_RISK_PER_MIN:
        tone, detail = Tone.RISK, "High filler density. Swap fillers for short breaths."
    elif filler_per_minute > FILLER_CAUTION_PER_MIN:
        tone, detail = Tone.CAUTION, "Moderate fillers. Try a beat of silence instead."
    else:
        tone, detail = Tone.POSITIVE, "Low fillers. Keep this clarity."
    return Insight("Fillers per min", f"{filler_per_minute:.1f}", detail, tone)


def _calm_insight(stress_speed_index: float | None) -> Insight:
    score = NEUTRAL_STRESS_INDEX if stress_speed_index is None else stress_speed_index
    if score > CALM_RISK:
        tone, detail = Tone.RISK, "Stress creeping in. Watch breathing when pace rises."
    elif score > CALM_CAUTION:
        tone, detail = Tone.CAUTION, "Slight tension. Short pauses will help reset."
    else:
        tone, detail = Tone.POSITIVE, "Calm delivery. Continue pairing pace and breath."
    value = "—" if stress_speed_index is None else f"{round(stress_speed_index * 100)}%"
    return Insight("Calm & control", value, detail, tone)


def derive_insights(metrics: MetricsSummary) -> list[Insight]:
    """Pace, filler and calm insight cards for *metrics*."""
    return [
        _pace_insight(metrics.avg_wpm),
        _filler_insight(metrics.filler_per_minute),
        _calm_insight(metrics.stress_speed_index),
    ]
