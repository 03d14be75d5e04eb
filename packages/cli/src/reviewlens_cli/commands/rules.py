"""rules command: list the built-in review rules."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from reviewlens_core.models import Category, Severity
from reviewlens_core.rules import DEFAULT_RULES

console = Console()

_SEVERITY_STYLE = {
    "critical": "bold red",
    "error": "red",
    "warning": "yellow",
    "info": "blue",
}


@click.command("rules")
@click.option(
    "--category",
    type=click.Choice([c.value for c in Category], case_sensitive=False),
    default=None,
    help="Only show rules in this category.",
)
@click.option(
    "--severity",
    type=click.Choice([s.value for s in Severity], case_sensitive=False),
    default=None,
    help="Only show rules with this severity.",
)
@click.option("--enabled", is_flag=True, help="Only show enabled rules.")
def rules_cmd(category: str | None, severity: str | None, enabled: bool):
    """List the review rules the agent is instructed to check."""
    rules = list(DEFAULT_RULES)
    if category:
        rules = [r for r in rules if r.category.value == category.lower()]
    if severity:
        rules = [r for r in rules if r.severity.value == severity.lower()]
    if enabled:
        rules = [r for r in rules if r.enabled]

    if not rules:
        console.print("[yellow]No rules match the given filters.[/yellow]")
        return

    table = Table(title=f"Review Rules ({len(rules)})", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Severity", width=10)
    table.add_column("Category", width=16)
    table.add_column("Enabled", justify="center", width=8)

    for rule in rules:
        style = _SEVERITY_STYLE[rule.severity.value]
        table.add_row(
            rule.id,
            rule.name,
            f"[{style}]{rule.severity.value}[/{style}]",
            rule.category.value,
            "[green]yes[/green]" if rule.enabled else "[dim]no[/dim]",
        )

    console.print(table)
