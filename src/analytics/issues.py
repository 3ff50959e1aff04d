"""Issue prioritization for focus cues."""

from __future__ import annotations

from collections.abc import Sequence

from src.sessions.models import Issue, Severity

_SEVERITY_ORDER: dict[Severity, int] = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}


def prioritize_issues(issues: Sequence[Issue]) -> list[Issue]:
    """Order issues high -> medium -> low, keeping input order within a severity."""
    # sorted() is stable; equal severities must not be reordered
    return sorted(issues, key=lambda i: _SEVERITY_ORDER[i.severity])


def focus_cues(issues: Sequence[Issue], limit: int = 3) -> list[Issue]:
    """The *limit* most severe issues."""
    return prioritize_issues(issues)[: max(limit, 0)]
