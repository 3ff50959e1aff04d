"""Pipeline configuration: session source enum and PipelineConfig dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.config import Settings


class SessionSourceMode(str, Enum):
    """Where the reconciler takes its sessions from."""

    REMOTE = "remote"  # remote conversations first, local fixtures as fallback
    FIXTURES = "fixtures"


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration for the session analytics pipeline.

    Holds the active session source and the tunable timing / grouping
    constants.  Defaults mirror the dashboard's behaviour (2% event grouping,
    polling every 2s for at most 60s).
    """

    session_source: SessionSourceMode = SessionSourceMode.REMOTE
    event_group_threshold_pct: float = 2.0
    focus_cue_limit: int = 3
    poll_interval_sec: float = 2.0
    poll_max_wait_sec: float = 60.0

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        return cls(
            session_source=SessionSourceMode(settings.session_source),
            event_group_threshold_pct=settings.event_group_threshold_pct,
            focus_cue_limit=settings.focus_cue_limit,
            poll_interval_sec=settings.poll_interval_sec,
            poll_max_wait_sec=settings.poll_max_wait_sec,
        )
