"""Presentation of a finished ReviewResult.

Every renderer is a pure function of the result: nothing is written,
printed or posted here. Callers decide where the text goes.
"""

from __future__ import annotations

import io
import json

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from reviewlens_core.config import ConfigurationError
from reviewlens_core.models import ReviewIssue, ReviewResult, ReviewStatus, Severity

FORMATS = ("console", "json", "markdown")

_SEVERITY_STYLE = {
    Severity.CRITICAL: "bold red",
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}
_SEVERITY_ICON = {
    Severity.CRITICAL: "✘",
    Severity.ERROR: "✘",
    Severity.WARNING: "⚠",
    Severity.INFO: "ℹ",
}
_STATUS_STYLE = {
    ReviewStatus.SUCCESS: "green",
    ReviewStatus.PARTIAL: "yellow",
    ReviewStatus.FAILURE: "red",
}


def render(result: ReviewResult, fmt: str = "json") -> str:
    if fmt == "json":
        return render_json(result)
    if fmt == "markdown":
        return render_markdown(result)
    if fmt == "console":
        return render_console(result)
    raise ConfigurationError(f"Unknown output format {fmt!r}. Choose one of: {', '.join(FORMATS)}.")


def render_json(result: ReviewResult) -> str:
    return json.dumps(result.to_dict(), indent=2, default=str)


def _fmt_duration(duration_ms: int) -> str:
    return f"{duration_ms / 1000:.2f}s"


def render_markdown(result: ReviewResult) -> str:
    stats = result.stats
    lines = ["# Code Review Results", "", "## Summary", ""]
    lines.append(f"- **Status**: {result.status.value.upper()}")
    lines.append(f"- **Summary**: {result.summary}")
    lines.append(f"- **Files Reviewed**: {stats.total_files}")
    lines.append(f"- **Total Issues**: {stats.total_issues}")
    lines.append(f"- **Duration**: {_fmt_duration(stats.duration_ms)}")
    lines.append(f"- **Cost**: ${stats.total_cost_usd:.4f}")
    lines.append("")

    if result.pr_intent:
        lines.extend(["## PR Intent", "", result.pr_intent, ""])

    if stats.total_issues > 0:
        lines.extend(["## Issues by Severity", ""])
        lines.append("| Critical | Error | Warning | Info |")
        lines.append("|:--------:|:-----:|:-------:|:----:|")
        sev = stats.issues_by_severity
        lines.append(f"| {sev['critical']} | {sev['error']} | {sev['warning']} | {sev['info']} |")
        lines.append("")
        lines.extend(["## Issues by Category", ""])
        for category, count in stats.issues_by_category.items():
            if count:
                lines.append(f"- {category}: {count}")
        lines.append("")

    impact = result.impact_analysis
    if impact is not None:
        lines.extend(["## Impact Analysis", ""])
        if impact.breaking_changes:
            lines.append("**Breaking changes:**")
            lines.extend(f"- {c}" for c in impact.breaking_changes)
        if impact.affected_files:
            lines.append("**Affected files:**")
            lines.extend(f"- `{f}`" for f in impact.affected_files)
        for label, text in (
            ("Integration", impact.integration_impact),
            ("Performance", impact.performance_impact),
            ("Security", impact.security_impact),
        ):
            if text:
                lines.append(f"- **{label}**: {text}")
        lines.append("")

    if result.issues:
        lines.extend(["## Detailed Issues", ""])
        for index, issue in enumerate(result.issues, 1):
            lines.extend(_markdown_issue(index, issue))
    else:
        lines.extend(["No issues found!", ""])

    if result.edge_cases:
        lines.extend(["## Edge Cases", ""])
        for case in result.edge_cases:
            mark = "x" if case.handled else " "
            suffix = f": {case.recommendation}" if case.recommendation and not case.handled else ""
            lines.append(f"- [{mark}] {case.scenario}{suffix}")
        lines.append("")

    for title, items in (
        ("Missing Tests", result.missing_tests),
        ("Missing Documentation", result.missing_documentation),
        ("Positive Findings", result.positives),
    ):
        if items:
            lines.extend([f"## {title}", ""])
            lines.extend(f"- {item}" for item in items)
            lines.append("")

    if result.recommendations:
        lines.extend(["## Recommendations", ""])
        lines.extend(f"{i}. {rec}" for i, rec in enumerate(result.recommendations, 1))
        lines.append("")

    if result.files_reviewed:
        lines.extend(["## Files Reviewed", ""])
        lines.extend(f"- `{f}`" for f in result.files_reviewed)
        lines.append("")

    if result.files_skipped:
        lines.extend(["## Files Skipped", ""])
        lines.extend(f"- `{f}`" for f in result.files_skipped)
        lines.append("")

    return "\n".join(lines)


def _markdown_issue(index: int, issue: ReviewIssue) -> list[str]:
    lines = [f"### Issue #{index}", ""]
    lines.append(f"- **Rule**: {issue.rule_id}")
    lines.append(f"- **Severity**: {issue.severity.value.upper()}")
    lines.append(f"- **Category**: {issue.category.value}")
    location = f"`{issue.file_path}`" if issue.file_path else "_unknown_"
    lines.append(f"- **File**: {location}")
    if issue.line is not None:
        lines.append(f"- **Line**: {issue.line}")
    lines.append(f"- **Message**: {issue.message}")
    if issue.suggestion:
        lines.append(f"- **Suggestion**: {issue.suggestion}")
    if issue.impact:
        lines.append(f"- **Impact**: {issue.impact}")
    if issue.snippet:
        lines.extend(["", "**Code:**", "```", issue.snippet, "```"])
    lines.append("")
    return lines


def render_console(result: ReviewResult, width: int = 100) -> str:
    """Render an ANSI-coloured terminal report and return it as text."""
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=True, color_system="standard", width=width, highlight=False)
    stats = result.stats

    console.print(Rule("[bold cyan]CODE REVIEW RESULTS[/bold cyan]"))
    status_style = _STATUS_STYLE[result.status]
    console.print(f"[bold]Status:[/bold] [{status_style}]{result.status.value.upper()}[/{status_style}]")
    console.print(f"[bold]Summary:[/bold] {escape(result.summary)}")
    console.print()

    table = Table(title="Statistics", show_header=False, title_justify="left")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Files Reviewed", str(stats.total_files))
    table.add_row("Total Issues", str(stats.total_issues))
    for severity in reversed(list(Severity)):
        style = _SEVERITY_STYLE[severity]
        table.add_row(f"[{style}]{severity.value.title()}[/{style}]", str(stats.issues_by_severity[severity.value]))
    table.add_row("Duration", _fmt_duration(stats.duration_ms))
    table.add_row("Cost", f"${stats.total_cost_usd:.4f}")
    console.print(table)
    console.print()

    if not result.issues:
        console.print("[green]No issues found![/green]")
    for index, issue in enumerate(result.issues, 1):
        style = _SEVERITY_STYLE[issue.severity]
        location = escape(issue.file_path or "unknown")
        if issue.line is not None:
            location += f":{issue.line}"
        console.print(
            f"[{style}]{_SEVERITY_ICON[issue.severity]} Issue #{index} {issue.severity.value.upper()}[/{style}]  "
            f"[bold cyan]{location}[/bold cyan]  [dim]{escape(issue.rule_id)}[/dim]"
        )
        console.print(f"  {escape(issue.message)}")
        if issue.suggestion:
            console.print(f"  [green]Suggestion:[/green] {escape(issue.suggestion)}")
        if issue.snippet:
            console.print(f"  [dim]{escape(issue.snippet)}[/dim]")
        console.print()

    if result.recommendations:
        console.print("[bold]Recommendations:[/bold]")
        for i, rec in enumerate(result.recommendations[:5], 1):
            console.print(f"  {i}. {escape(rec)}")
        console.print()

    console.print(Rule())
    return buffer.getvalue()


def build_pr_comment(result: ReviewResult, report: str) -> str:
    """Wrap a rendered report as a pull-request comment body."""
    return (
        "## \U0001f916 AI Code Review Results\n\n"
        f"{report}\n\n---\n"
        f"*Found {result.stats.total_issues} issue(s) · Cost: ${result.stats.total_cost_usd:.4f}*"
    )
