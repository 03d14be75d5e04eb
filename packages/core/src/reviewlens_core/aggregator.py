"""Aggregation of normalized issues into stats, status and summary.

Counts and status always describe the full issue set; only the issue list
handed back to the caller is threshold-filtered.
"""

from __future__ import annotations

from typing import Iterable, Optional

from reviewlens_core.models import Category, ReviewIssue, ReviewStats, ReviewStatus, Severity


def count_by_severity(issues: Iterable[ReviewIssue]) -> dict[str, int]:
    counts = {s.value: 0 for s in Severity}
    for issue in issues:
        counts[issue.severity.value] += 1
    return counts


def count_by_category(issues: Iterable[ReviewIssue]) -> dict[str, int]:
    """Per-category counts; every category is present, even at zero."""
    counts = {c.value: 0 for c in Category}
    for issue in issues:
        counts[issue.category.value] += 1
    return counts


def determine_status(issues: Iterable[ReviewIssue]) -> ReviewStatus:
    """critical → failure, else error → partial, else success."""
    severities = {i.severity for i in issues}
    if Severity.CRITICAL in severities:
        return ReviewStatus.FAILURE
    if Severity.ERROR in severities:
        return ReviewStatus.PARTIAL
    return ReviewStatus.SUCCESS


def filter_by_severity(issues: Iterable[ReviewIssue], threshold: Optional[Severity]) -> list[ReviewIssue]:
    """Keep issues at or above ``threshold``; ``None`` keeps everything."""
    if threshold is None:
        return list(issues)
    return [i for i in issues if i.severity.rank >= threshold.rank]


def build_summary(
    severity_counts: dict[str, int],
    total_issues: int,
    files_reviewed: int,
    pr_intent: Optional[str] = None,
) -> str:
    """Build the one-paragraph summary from already-computed aggregates."""
    summary = ""
    if pr_intent:
        summary += f"PR Intent: {pr_intent}\n\n"
    summary += f"Reviewed {files_reviewed} file(s). "
    summary += f"Found {total_issues} issue(s): "
    summary += (
        f"{severity_counts.get(Severity.CRITICAL.value, 0)} critical, "
        f"{severity_counts.get(Severity.ERROR.value, 0)} errors, "
        f"{severity_counts.get(Severity.WARNING.value, 0)} warnings."
    )
    return summary


def build_stats(
    issues: list[ReviewIssue],
    files_reviewed: list[str],
    total_cost_usd: float = 0.0,
    duration_ms: int = 0,
) -> ReviewStats:
    return ReviewStats(
        total_files=len(files_reviewed),
        total_issues=len(issues),
        issues_by_severity=count_by_severity(issues),
        issues_by_category=count_by_category(issues),
        total_cost_usd=total_cost_usd,
        duration_ms=duration_ms,
    )
