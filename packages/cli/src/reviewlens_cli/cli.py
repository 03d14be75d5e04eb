"""CLI entry point for reviewlens.

Commands:
  review   run an agent review of a directory or pull request
  rules    list the built-in review rules
  config   show the effective configuration
  action   GitHub Actions entry point
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from reviewlens_cli.commands.action import action_cmd
from reviewlens_cli.commands.config_cmd import config_cmd
from reviewlens_cli.commands.review import review_cmd
from reviewlens_cli.commands.rules import rules_cmd

console = Console()

LOG_LEVELS = ("debug", "info", "warning", "error")


def configure_logging(level: str = "info") -> None:
    """Install a RichHandler on the root logger at ``level``."""
    numeric = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric, int):
        from reviewlens_core.config import ConfigurationError

        raise ConfigurationError(f"Unknown log level {level!r}. Choose one of: {', '.join(LOG_LEVELS)}.")
    logging.basicConfig(
        level=numeric,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)],
        force=True,
    )


def build_audit_log(config: dict):
    """Instantiate the audit log selected by the settings.

      enable_audit_log: false  → NoOpAuditLog (default)
      enable_audit_log: true   → JsonlAuditLog at audit_log_path,
                                 or logs/audit-<epoch-ms>.log
    """
    from reviewlens_audit.noop import NoOpAuditLog

    if not config.get("enable_audit_log"):
        return NoOpAuditLog()

    from reviewlens_audit.jsonl import JsonlAuditLog, default_audit_path

    path = config.get("audit_log_path") or default_audit_path()
    logging.getLogger(__name__).debug("Audit log enabled: %s", path)
    return JsonlAuditLog(path)


@click.group()
@click.version_option(
    version=importlib.metadata.version("reviewlens"),
    prog_name="reviewlens",
)
@click.option(
    "--config",
    "config_path",
    default=".reviewlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVIEWLENS_CONFIG",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level. Overrides LOG_LEVEL and the config file.",
)
@click.pass_context
def main(ctx: click.Context, config_path: str, log_level: str | None):
    """Agent-driven code reviewer for local checkouts and pull requests."""
    from reviewlens_core.config import ConfigurationError, load_config

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path, cli_overrides={"log_level": log_level})
        configure_logging(config["log_level"])
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    audit = build_audit_log(config)
    ctx.obj["config"] = config
    ctx.obj["audit"] = audit
    ctx.call_on_close(audit.close)


main.add_command(review_cmd)
main.add_command(rules_cmd)
main.add_command(config_cmd)
main.add_command(action_cmd)
