"""config command: show the effective configuration."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from reviewlens_core.config import ConfigurationError, build_config

console = Console()


def _set_or_not(value) -> str:
    return "[green]Set[/green]" if value else "[red]Not set[/red]"


@click.command("config")
@click.pass_context
def config_cmd(ctx):
    """Show the configuration a review would run with.

    Values are merged from built-in defaults, environment variables, the
    config file and (for `review`) command-line options, in that order.
    """
    settings = ctx.obj["config"]
    try:
        config = build_config(settings)
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    table = Table(title="Effective Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    table.add_row("Model", config.model)
    table.add_row("Max files", str(config.max_files))
    table.add_row("Max budget (USD)", f"${config.max_budget_usd:.2f}")
    threshold = config.severity_threshold.value if config.severity_threshold else "none"
    table.add_row("Severity threshold", threshold)
    table.add_row("Include patterns", ", ".join(config.include_patterns))
    table.add_row("Exclude patterns", ", ".join(config.exclude_patterns))
    table.add_row("Enabled rules", str(len(config.rules)))
    table.add_row("Working directory", config.cwd)
    table.add_row("Log level", str(settings.get("log_level")))
    audit = settings.get("audit_log_path") or "logs/audit-<timestamp>.log"
    table.add_row("Audit log", audit if settings.get("enable_audit_log") else "disabled")
    table.add_row("ANTHROPIC_API_KEY", _set_or_not(settings.get("anthropic_api_key")))
    table.add_row("GITHUB_TOKEN", _set_or_not(settings.get("github_token")))

    console.print(table)
