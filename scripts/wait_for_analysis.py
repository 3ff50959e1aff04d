"""Wait for a conversation's analysis and print a summary once it is ready.

Usage::

    python -m scripts.wait_for_analysis conv-123 --interval 2 --max-wait 60
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time

from src.analytics.issues import focus_cues
from src.analytics.metrics import with_derived_metrics
from src.backend.client import BackendClient
from src.config import settings
from src.reconciler import build_shell, enrich
from src.recording.poller import AnalysisPoller
from src.sessions.models import ConversationRecord, RemoteStatus


async def run(conversation_id: str, interval: float, max_wait: float) -> int:
    if not settings.backend_url:
        print("BACKEND_URL is not configured.")
        return 2

    client = BackendClient.from_settings(settings)
    poller = AnalysisPoller(client, interval_sec=interval, max_wait_sec=max_wait)
    result = await poller.wait_for_analysis(
        conversation_id,
        on_progress=lambda elapsed: print(f"Analyzing your speech... ({elapsed:.0f}s)"),
    )

    if not result.ready or result.analysis is None:
        print(f"Analysis is taking longer than expected ({result.elapsed_sec:.0f}s, {result.attempts} polls).")
        return 1

    record = ConversationRecord(id=conversation_id, timestamp=time.time(), status=RemoteStatus.FINISHED)
    session = with_derived_metrics(enrich(build_shell(record), result.analysis))
    assert session.analysis is not None
    m = session.analysis.metrics
    print(f"\n{session.title}")
    print(f"  duration: {m.duration_sec:.1f}s  words: {m.total_words}  pace: {m.avg_wpm:.0f} WPM")
    print(f"  fillers: {m.filler_count} ({m.filler_per_minute:.1f}/min)")
    for issue in focus_cues(session.analysis.issues, settings.focus_cue_limit):
        print(f"  [{issue.severity.value}] {issue.kind}: {issue.message}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("conversation_id")
    parser.add_argument("--interval", type=float, default=settings.poll_interval_sec, help="Seconds between polls")
    parser.add_argument("--max-wait", type=float, default=settings.poll_max_wait_sec, help="Give up after this many seconds")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    return asyncio.run(run(args.conversation_id, args.interval, args.max_wait))


if __name__ == "__main__":
    sys.exit(main())
