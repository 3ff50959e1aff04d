"""Session reconciliation: remote conversations, on-demand analysis, local fixtures.

The reconciler is the exit gate of the analytics layer: every session it
returns, whether remote or fixture, has been through
:func:`~src.analytics.metrics.with_derived_metrics`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime

from src.analytics.metrics import with_derived_metrics
from src.backend.client import SessionSource
from src.pipeline_config import PipelineConfig, SessionSourceMode
from src.sessions.fixtures import FIXTURE_SESSIONS
from src.sessions.models import (
    Analysis,
    AnalysisStatus,
    ConversationRecord,
    RemoteStatus,
    Session,
    SessionContext,
    SessionMode,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

_STATUS_MAP: dict[str, AnalysisStatus] = {
    RemoteStatus.RECORDING: AnalysisStatus.PROCESSING,
    RemoteStatus.PROCESSING: AnalysisStatus.PROCESSING,
    RemoteStatus.FINISHED: AnalysisStatus.READY,
}


def map_status(remote_status: str) -> AnalysisStatus:
    """Map a remote conversation status to the internal analysis status.

    ``recording`` and ``processing`` -> processing, ``finished`` -> ready,
    anything else -> pending.
    """
    return _STATUS_MAP.get(remote_status, AnalysisStatus.PENDING)


def shell_title(created_at: datetime) -> str:
    return f"Session {created_at:%Y-%m-%d %H:%M}"


def build_shell(record: ConversationRecord, user_id: str = "user-remote") -> Session:
    """Minimal session for a conversation record that has not been enriched.

    A timestamp outside the platform range (e.g. milliseconds instead of
    seconds) yields a shell dated at the Unix epoch.
    """
    try:
        created_at = datetime.fromtimestamp(record.timestamp, tz=UTC)
    except (ValueError, OverflowError, OSError):
        logger.warning("Conversation %s has unusable timestamp %r", record.id, record.timestamp)
        created_at = _EPOCH
    return Session(
        id=record.id,
        user_id=user_id,
        title=shell_title(created_at),
        mode=SessionMode.PRACTICE,
        context=SessionContext.OTHER,
        created_at=created_at,
        started_at=created_at,
        duration_sec=0.0,
        analysis_status=map_status(record.status),
    )


def enrich(shell: Session, analysis: Analysis) -> Session:
    """Splice *analysis* into *shell*, preferring the analysis title when present."""
    return replace(
        shell,
        title=analysis.title or shell.title,
        duration_sec=analysis.metrics.duration_sec,
        analysis_status=AnalysisStatus.READY,
        analysis=analysis,
    )


class SessionReconciler:
    """Builds the authoritative session list and single-session lookups.

    With ``SessionSourceMode.REMOTE`` the remote conversation list is used
    whenever it yields at least one record; local fixtures are used only when
    it is empty or unreachable, and never mixed with remote entries.  With
    ``SessionSourceMode.FIXTURES`` (or no source) only fixtures are served.
    """

    def __init__(
        self,
        source: SessionSource | None,
        config: PipelineConfig | None = None,
        fixtures: Sequence[Session] = FIXTURE_SESSIONS,
        user_id: str = "user-remote",
    ) -> None:
        self.source = source
        self.config = config or PipelineConfig()
        self.fixtures = tuple(fixtures)
        self.user_id = user_id

    @property
    def uses_remote(self) -> bool:
        return self.source is not None and self.config.session_source is SessionSourceMode.REMOTE

    def _fixture_sessions(self) -> list[Session]:
        ordered = sorted(self.fixtures, key=lambda s: s.created_at, reverse=True)
        return [with_derived_metrics(s) for s in ordered]

    async def _remote_conversations(self) -> list[ConversationRecord]:
        """Remote conversation list; empty when the source is unreachable."""
        source = self.source
        if source is None:
            return []
        try:
            return await source.list_conversations()
        except Exception:
            logger.exception("Conversation list unavailable; falling back to fixtures")
            return []

    async def _enrich_shell(self, shell: Session) -> Session:
        if shell.analysis_status is not AnalysisStatus.READY:
            return shell
        source = self.source
        if source is None:
            return shell
        try:
            analysis = await source.fetch_analysis(shell.id)
        except Exception:
            logger.exception("Enrichment failed for session %s", shell.id)
            return shell
        if analysis is None:
            return shell
        return enrich(shell, analysis)

    async def list_sessions(self) -> list[Session]:
        """All sessions, newest first, each with derived metrics."""
        if not self.uses_remote:
            return self._fixture_sessions()

        records = await self._remote_conversations()
        if not records:
            return self._fixture_sessions()

        shells = [build_shell(r, self.user_id) for r in records]
        sessions = await asyncio.gather(*(self._enrich_shell(s) for s in shells))
        logger.info(
            "Reconciled %d remote sessions (%d enriched)",
            len(sessions),
            sum(1 for s in sessions if s.analysis is not None),
        )
        ordered = sorted(sessions, key=lambda s: s.created_at, reverse=True)
        return [with_derived_metrics(s) for s in ordered]

    async def get_session(self, session_id: str) -> Session | None:
        """Look up one session, mirroring :meth:`list_sessions` for a single id.

        The analysis is fetched directly even when *session_id* is missing
        from the conversation list, since a conversation record can fail to
        materialize while its analysis already exists.
        """
        if not self.uses_remote:
            return self._fixture_by_id(session_id)

        records = await self._remote_conversations()
        record = next((r for r in records if r.id == session_id), None)

        if record is not None:
            shell = build_shell(record, self.user_id)
            return with_derived_metrics(await self._enrich_shell(shell))

        orphan = build_shell(
            ConversationRecord(
                id=session_id,
                timestamp=datetime.now(UTC).timestamp(),
                status=RemoteStatus.FINISHED,
            ),
            self.user_id,
        )
        enriched = await self._enrich_shell(orphan)
        if enriched.analysis is not None:
            return with_derived_metrics(enriched)

        if not records:
            return self._fixture_by_id(session_id)
        return None

    def _fixture_by_id(self, session_id: str) -> Session | None:
        session = next((s for s in self.fixtures if s.id == session_id), None)
        return with_derived_metrics(session) if session is not None else None
