"""Session endpoints: list, detail, timeline and insight views."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from src.analytics.insights import derive_insights
from src.analytics.issues import focus_cues
from src.analytics.timeline import build_timeline, pace_state, structure_state, total_duration_ms
from src.api.models import EventGroupResponse, InsightsResponse, SegmentBand, TimelineResponse
from src.backend.client import BackendClient
from src.config import settings
from src.pipeline_config import PipelineConfig
from src.reconciler import SessionReconciler
from src.sessions.models import Session

router = APIRouter()


def get_pipeline_config() -> PipelineConfig:
    return PipelineConfig.from_settings(settings)


def get_reconciler(config: PipelineConfig = Depends(get_pipeline_config)) -> SessionReconciler:
    """Reconciler wired from settings; fixtures only when no backend URL is configured."""
    source = BackendClient.from_settings(settings) if settings.backend_url else None
    return SessionReconciler(source, config, user_id=settings.default_user_id)


async def _get_or_404(reconciler: SessionReconciler, session_id: str) -> Session:
    session = await reconciler.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.get("/api/sessions", response_model=list[Session])
async def list_sessions(reconciler: SessionReconciler = Depends(get_reconciler)) -> list[Session]:
    """List all sessions, newest first, with metrics derived from their segments."""
    return await reconciler.list_sessions()


@router.get("/api/sessions/{session_id}", response_model=Session)
async def get_session(session_id: str, reconciler: SessionReconciler = Depends(get_reconciler)) -> Session:
    """Get one session including its analysis, if ready."""
    return await _get_or_404(reconciler, session_id)


@router.get("/api/sessions/{session_id}/timeline", response_model=TimelineResponse)
async def get_timeline(
    session_id: str,
    threshold_pct: float | None = Query(default=None, gt=0, le=100),
    reconciler: SessionReconciler = Depends(get_reconciler),
) -> TimelineResponse:
    """Grouped timeline events plus per-segment pace / structure bands.

    A session without analysis yields an empty timeline.
    """
    session = await _get_or_404(reconciler, session_id)
    if session.analysis is None:
        return TimelineResponse(session_id=session_id, total_duration_ms=0.0)

    segments = session.analysis.segments
    threshold = threshold_pct if threshold_pct is not None else reconciler.config.event_group_threshold_pct
    return TimelineResponse(
        session_id=session_id,
        total_duration_ms=total_duration_ms(segments),
        groups=[EventGroupResponse.from_group(g) for g in build_timeline(segments, threshold)],
        bands=[
            SegmentBand(
                segment_id=s.id,
                start_ms=s.start_ms,
                end_ms=s.end_ms,
                pace=pace_state(s),
                structure=structure_state(s),
            )
            for s in segments
        ],
    )


@router.get("/api/sessions/{session_id}/insights", response_model=InsightsResponse)
async def get_insights(
    session_id: str,
    limit: int | None = Query(default=None, ge=0),
    reconciler: SessionReconciler = Depends(get_reconciler),
) -> InsightsResponse:
    """Metric insight cards and the top severity-ordered focus cues."""
    session = await _get_or_404(reconciler, session_id)
    if session.analysis is None:
        raise HTTPException(status_code=404, detail="Session has no analysis yet")

    analysis = session.analysis
    return InsightsResponse(
        session_id=session_id,
        metrics=analysis.metrics,
        insights=derive_insights(analysis.metrics),
        focus_cues=focus_cues(analysis.issues, limit if limit is not None else reconciler.config.focus_cue_limit),
    )
