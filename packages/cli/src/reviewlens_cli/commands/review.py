"""review command: run an agent review of a directory or pull request."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from pathlib import Path

import click
from github import GithubException
from rich.console import Console

from reviewlens_core.config import ConfigurationError, build_config, validate_config
from reviewlens_core.formatter import FORMATS, render
from reviewlens_core.gh.pull_request import get_pr_context, get_repo
from reviewlens_core.models import ReviewConfig, ReviewResult, ReviewStatus, Severity
from reviewlens_core.providers.claude import ClaudeAgent
from reviewlens_core.reviewer import run_review

logger = logging.getLogger(__name__)
console = Console()


def exit_code_for(status: ReviewStatus, allow_partial: bool = False) -> int:
    if status == ReviewStatus.SUCCESS:
        return 0
    if status == ReviewStatus.PARTIAL and allow_partial:
        return 0
    return 1


def resolve_review_config(settings: dict, overrides: dict) -> tuple[ReviewConfig, str]:
    """Apply CLI overrides to loaded settings and return (config, api_key).

    Raises click.UsageError for anything that must stop the review before
    the agent is contacted.
    """
    from reviewlens_cli.auth import resolve_api_key

    merged = dict(settings)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        config = build_config(merged)
        api_key = resolve_api_key(merged)
        validate_config(config, api_key)
    except ConfigurationError as e:
        raise click.UsageError(str(e))
    return config, api_key


def execute_review(target: str, config: ReviewConfig, api_key: str, audit=None) -> ReviewResult:
    """Run one review to completion on a fresh event loop."""
    agent = ClaudeAgent(api_key=api_key)
    return asyncio.run(run_review(target, config, agent, audit=audit))


@click.command("review")
@click.argument("target", default=".", required=False)
@click.option("--model", default=None, help="Model identifier. Overrides config file.")
@click.option("--budget", type=float, default=None, help="Maximum spend in USD for this review.")
@click.option("--max-files", type=int, default=None, help="Maximum number of files to review.")
@click.option(
    "--severity",
    type=click.Choice([s.value for s in Severity], case_sensitive=False),
    default=None,
    help="Only report issues at or above this severity.",
)
@click.option("--include", multiple=True, help="Glob of files to review. Repeatable.")
@click.option("--exclude", multiple=True, help="Glob of files to skip, added to the built-in excludes. Repeatable.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(FORMATS),
    default="console",
    show_default=True,
    help="Report format.",
)
@click.option("--output", "-o", "output", default=None, help="Write the report to this file instead of stdout.")
@click.option("--verbose", "-v", is_flag=True, help="Log agent messages and tool use.")
@click.option("--repo", default=None, help="GitHub repository (owner/name) to fetch PR context from.")
@click.option("--pr", "pr_number", type=int, default=None, help="Pull request number to fetch PR context for.")
@click.option("--allow-partial", is_flag=True, help="Exit 0 when the review status is partial.")
@click.pass_context
def review_cmd(
    ctx,
    target: str,
    model: str | None,
    budget: float | None,
    max_files: int | None,
    severity: str | None,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    fmt: str,
    output: str | None,
    verbose: bool,
    repo: str | None,
    pr_number: int | None,
    allow_partial: bool,
):
    """Review the code under TARGET (default: current directory).

    The agent may only read, search and list files; it never edits or
    executes anything. Exit status is 0 when no critical or error issues
    were found, 1 otherwise.

    \b
    Required environment variables:
      ANTHROPIC_API_KEY    Anthropic API key
      GITHUB_TOKEN         Only with --repo/--pr (or use gh CLI)
    """
    from reviewlens_cli.auth import resolve_github_token

    settings = ctx.obj["config"]
    audit = ctx.obj.get("audit")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config, api_key = resolve_review_config(
        settings,
        {
            "model": model,
            "max_budget_usd": budget,
            "max_files": max_files,
            "severity_threshold": severity,
            "include": list(include) or None,
            "exclude": list(exclude) or None,
            "verbose": verbose or None,
        },
    )

    if (repo is None) != (pr_number is None):
        raise click.UsageError("--repo and --pr must be given together.")

    if repo is not None:
        token = resolve_github_token()
        if not token:
            raise click.UsageError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")
        try:
            pr_context = get_pr_context(get_repo(repo, token=token), pr_number)
        except GithubException as e:
            logger.warning("Could not access %s; reviewing without PR context: %s", repo, e)
            pr_context = None
        if pr_context is not None:
            config = replace(config, pr_context=pr_context)

    try:
        result = execute_review(target, config, api_key, audit=audit)
    except Exception as e:
        console.print(f"[red]Review failed:[/red] {e}")
        ctx.exit(1)

    report = render(result, fmt)
    if output:
        Path(output).write_text(report, encoding="utf-8")
        console.print(f"Report written to [bold]{output}[/bold]")
    else:
        click.echo(report)

    ctx.exit(exit_code_for(result.status, allow_partial))
