"""Recording-to-analysis poller.

Drives the lifecycle IDLE -> RECORDING -> UPLOADING -> ANALYZING -> READY |
TIMED_OUT.  After a recording stops, the analysis endpoint is polled at a
fixed interval until it returns a non-empty segment list or the maximum wait
elapses.  A timeout is a terminal state, not an exception.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from src.backend.client import SessionSource
from src.pipeline_config import PipelineConfig
from src.sessions.models import Analysis, RemoteStatus

logger = logging.getLogger(__name__)


class PollerState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    UPLOADING = "uploading"
    ANALYZING = "analyzing"
    READY = "ready"
    TIMED_OUT = "timed_out"


# Legal state transitions
_TRANSITIONS: dict[PollerState, set[PollerState]] = {
    PollerState.IDLE: {PollerState.RECORDING},
    PollerState.RECORDING: {PollerState.UPLOADING, PollerState.IDLE},
    PollerState.UPLOADING: {PollerState.ANALYZING},
    PollerState.ANALYZING: {PollerState.READY, PollerState.TIMED_OUT},
    PollerState.READY: {PollerState.IDLE},
    PollerState.TIMED_OUT: {PollerState.IDLE},
}


class StatusSink(Protocol):
    async def update_status(self, conversation_id: str, status: RemoteStatus) -> None: ...


ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class PollResult:
    """Outcome of waiting for an analysis."""

    state: PollerState  # READY or TIMED_OUT
    conversation_id: str
    analysis: Analysis | None
    elapsed_sec: float
    attempts: int

    @property
    def ready(self) -> bool:
        return self.state is PollerState.READY


class AnalysisPoller:
    """Waits for a conversation's analysis after the recording stops.

    Usage:
        poller = AnalysisPoller(client, status_sink=client)
        await poller.start_recording("conv-123")
        ...
        result = await poller.stop(on_progress=lambda s: print(f"{s:.0f}s"))
        if result.ready:
            show(result.analysis)
    """

    def __init__(
        self,
        source: SessionSource,
        interval_sec: float = 2.0,
        max_wait_sec: float = 60.0,
        status_sink: StatusSink | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.source = source
        self.interval_sec = interval_sec
        self.max_wait_sec = max_wait_sec
        self.status_sink = status_sink
        self._clock = clock
        self._sleep = sleep
        self._state = PollerState.IDLE
        self._conversation_id: str | None = None

    @classmethod
    def from_config(
        cls,
        source: SessionSource,
        config: PipelineConfig,
        status_sink: StatusSink | None = None,
    ) -> AnalysisPoller:
        return cls(
            source,
            interval_sec=config.poll_interval_sec,
            max_wait_sec=config.poll_max_wait_sec,
            status_sink=status_sink,
        )

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def conversation_id(self) -> str | None:
        return self._conversation_id

    def _transition(self, target: PollerState) -> None:
        """Move to *target*.  Raises ValueError on illegal transitions."""
        if target not in _TRANSITIONS[self._state]:
            raise ValueError(f"Illegal poller transition: {self._state.value} -> {target.value}")
        logger.info("Poller %s -> %s (%s)", self._state.value, target.value, self._conversation_id)
        self._state = target

    async def _report_status(self, status: RemoteStatus) -> None:
        if self.status_sink is None or self._conversation_id is None:
            return
        try:
            await self.status_sink.update_status(self._conversation_id, status)
        except Exception:
            # Status reporting is advisory; polling decides readiness.
            logger.warning("Could not mark %s as %s", self._conversation_id, status.value, exc_info=True)

    async def start_recording(self, conversation_id: str) -> None:
        self._conversation_id = conversation_id
        self._transition(PollerState.RECORDING)
        await self._report_status(RemoteStatus.RECORDING)

    def cancel_recording(self) -> None:
        """Abandon a recording that has not been stopped."""
        self._transition(PollerState.IDLE)
        self._conversation_id = None

    async def stop(self, on_progress: ProgressCallback | None = None) -> PollResult:
        """Stop recording and wait for its analysis."""
        if self._state is not PollerState.RECORDING or self._conversation_id is None:
            raise ValueError(f"Cannot stop from state {self._state.value}")
        self._transition(PollerState.UPLOADING)
        await self._report_status(RemoteStatus.PROCESSING)
        self._transition(PollerState.ANALYZING)
        result = await self.wait_for_analysis(self._conversation_id, on_progress)
        self._transition(result.state)
        return result

    def reset(self) -> None:
        """Return to IDLE from any state, e.g. after a cancelled wait."""
        self._state = PollerState.IDLE
        self._conversation_id = None

    async def wait_for_analysis(
        self,
        conversation_id: str,
        on_progress: ProgressCallback | None = None,
    ) -> PollResult:
        """Poll until the analysis has segments or ``max_wait_sec`` elapses.

        Each attempt reports the elapsed seconds to *on_progress*.  Fetch
        failures count as "not ready yet".  No single fetch or sleep may run
        past the deadline.
        """
        start = self._clock()
        attempts = 0

        while (remaining := self.max_wait_sec - (self._clock() - start)) > 0:
            attempts += 1
            elapsed = self._clock() - start
            if on_progress is not None:
                on_progress(elapsed)

            try:
                analysis = await asyncio.wait_for(self.source.fetch_analysis(conversation_id), timeout=remaining)
            except Exception as e:
                logger.debug("Poll %d for %s failed: %s", attempts, conversation_id, e)
                analysis = None

            if analysis is not None and analysis.segments:
                elapsed = self._clock() - start
                logger.info("Analysis for %s ready after %.1fs (%d polls)", conversation_id, elapsed, attempts)
                return PollResult(PollerState.READY, conversation_id, analysis, elapsed, attempts)

            remaining = self.max_wait_sec - (self._clock() - start)
            if remaining <= 0:
                break
            await self._sleep(min(self.interval_sec, remaining))

        elapsed = self._clock() - start
        logger.info("Analysis for %s timed out after %.1fs (%d polls)", conversation_id, elapsed, attempts)
        return PollResult(PollerState.TIMED_OUT, conversation_id, None, elapsed, attempts)
