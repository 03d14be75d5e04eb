"""Credential resolution for the CLI.

GitHub token resolution order (stops at first success):
  1. GITHUB_TOKEN environment variable (CI / explicit override)
  2. `gh auth token` (GitHub CLI session, after `gh auth login`)

The Anthropic API key only comes from ANTHROPIC_API_KEY.
"""

from __future__ import annotations

import logging
import os
import subprocess

from reviewlens_core.config import get_api_key

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no source is available.

    Never raises; callers decide whether a missing token is fatal.
    """
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved GitHub token via gh CLI session.")
                return gh_token
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass

    return None


def resolve_api_key(config: dict) -> str:
    """Return the Anthropic API key or raise ConfigurationError."""
    return get_api_key(config)
