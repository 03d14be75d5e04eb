"""action command: GitHub Actions entry point.

Reads the workflow environment (GITHUB_EVENT_PATH, GITHUB_REPOSITORY,
GITHUB_WORKSPACE), reviews the workspace with the pull request as context,
writes the report files and step outputs, and optionally comments on the PR.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from pathlib import Path

import click
from github import GithubException
from rich.console import Console

from reviewlens_core.formatter import FORMATS, build_pr_comment, render, render_json
from reviewlens_core.gh.pull_request import get_pr_context, get_pull, get_repo, post_comment
from reviewlens_core.models import PRContext, ReviewResult, Severity

from reviewlens_cli.commands.review import execute_review, resolve_review_config

logger = logging.getLogger(__name__)
console = Console()

REPORT_FILE = "code-review-report.md"
RESULT_FILE = "review-result.json"
FAIL_ON_CHOICES = ("critical", "error", "warning", "never")


def load_event(event_path: str | None) -> dict:
    if not event_path or not Path(event_path).exists():
        return {}
    with open(event_path, encoding="utf-8") as f:
        payload = json.load(f)
    return payload if isinstance(payload, dict) else {}


def pr_context_from_event(pull_request: dict) -> PRContext:
    """PR metadata straight from the event payload, without file diffs."""
    return PRContext(
        title=pull_request.get("title"),
        description=pull_request.get("body") or None,
        number=pull_request.get("number"),
        author=(pull_request.get("user") or {}).get("login"),
        branch=(pull_request.get("head") or {}).get("ref"),
        base_branch=(pull_request.get("base") or {}).get("ref"),
    )


def should_fail(result: ReviewResult, fail_on: str) -> bool:
    """True when any issue at or above ``fail_on`` severity was found."""
    if fail_on == "never":
        return False
    floor = Severity(fail_on).rank
    counts = result.stats.issues_by_severity
    return any(counts.get(s.value, 0) > 0 for s in Severity if s.rank >= floor)


def write_outputs(outputs: dict, output_path: str | None = None) -> None:
    """Append ``name=value`` lines to the GITHUB_OUTPUT file."""
    output_path = output_path or os.environ.get("GITHUB_OUTPUT")
    if not output_path:
        logger.debug("GITHUB_OUTPUT not set; step outputs: %s", outputs)
        return
    with open(output_path, "a", encoding="utf-8") as f:
        for name, value in outputs.items():
            f.write(f"{name}={value}\n")


@click.command("action")
@click.option("--target", default=".", show_default=True, help="Path to review, relative to the workspace.")
@click.option("--model", default=None, help="Model identifier. Overrides config file.")
@click.option("--budget", type=float, default=None, help="Maximum spend in USD for this review.")
@click.option("--max-files", type=int, default=None, help="Maximum number of files to review.")
@click.option(
    "--severity",
    type=click.Choice([s.value for s in Severity], case_sensitive=False),
    default=None,
    help="Only report issues at or above this severity.",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(FORMATS),
    default="markdown",
    show_default=True,
    help="Format of the report file.",
)
@click.option("--comment/--no-comment", default=False, show_default=True, help="Post the report as a PR comment.")
@click.option(
    "--fail-on",
    type=click.Choice(FAIL_ON_CHOICES),
    default="critical",
    show_default=True,
    help="Fail the step when an issue at or above this severity is found.",
)
@click.pass_context
def action_cmd(
    ctx,
    target: str,
    model: str | None,
    budget: float | None,
    max_files: int | None,
    severity: str | None,
    fmt: str,
    comment: bool,
    fail_on: str,
):
    """Run a review inside a GitHub Actions workflow."""
    from reviewlens_cli.auth import resolve_github_token

    settings = ctx.obj["config"]
    audit = ctx.obj.get("audit")
    workspace = Path(os.environ.get("GITHUB_WORKSPACE") or os.getcwd())

    config, api_key = resolve_review_config(
        settings,
        {
            "model": model,
            "max_budget_usd": budget,
            "max_files": max_files,
            "severity_threshold": severity,
            "cwd": str(workspace),
        },
    )

    event = load_event(os.environ.get("GITHUB_EVENT_PATH"))
    pull_request = event.get("pull_request")
    repository = os.environ.get("GITHUB_REPOSITORY")
    token = resolve_github_token()
    repo_obj = None

    pr_number = (pull_request or {}).get("number")
    if pull_request:
        pr_context = None
        if token and repository:
            try:
                repo_obj = get_repo(repository, token=token)
            except GithubException as e:
                logger.warning("Could not access %s; using the event payload for PR context: %s", repository, e)
        if repo_obj is not None and pr_number is not None:
            pr_context = get_pr_context(repo_obj, pr_number)
        if pr_context is None:
            pr_context = pr_context_from_event(pull_request)
        config = replace(config, pr_context=pr_context)
        console.print(f"PR: #{pr_context.number} - {pr_context.title}")
        console.print(f"Changed files: {len(pr_context.changed_files)}")

    console.print(f"Starting code review of [bold]{target}[/bold] with {config.model}")
    try:
        result = execute_review(target, config, api_key, audit=audit)
    except Exception as e:
        console.print(f"[red]Action failed:[/red] {e}")
        ctx.exit(1)

    report = render(result, fmt)
    report_path = workspace / REPORT_FILE
    report_path.write_text(report, encoding="utf-8")
    (workspace / RESULT_FILE).write_text(render_json(result), encoding="utf-8")

    console.print(f"Review completed: {result.status.value}")
    console.print(f"Total issues: {result.stats.total_issues}")

    counts = result.stats.issues_by_severity
    write_outputs(
        {
            "status": result.status.value,
            "total-issues": result.stats.total_issues,
            "critical-count": counts["critical"],
            "error-count": counts["error"],
            "warning-count": counts["warning"],
            "report-file": str(report_path),
        }
    )

    if comment and pull_request:
        if repo_obj is None or pr_number is None:
            console.print("[yellow]No GitHub repository or PR number available, skipping PR comment.[/yellow]")
        else:
            try:
                post_comment(get_pull(repo_obj, pr_number), build_pr_comment(result, report))
                console.print("Posted review results as PR comment")
            except GithubException as e:
                logger.warning("Failed to post PR comment: %s", e)

    if should_fail(result, fail_on):
        console.print(f"[red]Code review found issues at or above '{fail_on}' severity.[/red]")
        ctx.exit(1)
