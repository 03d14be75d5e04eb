"""PR context from the local git checkout.

Used when a review runs outside a pull request (e.g. on a feature branch
locally): the current branch, the files changed against the first base
branch that exists, and the last commit's message and author stand in for
PR metadata. Every git failure is tolerated; the worst case is no context.
"""

from __future__ import annotations

import logging
import subprocess

from reviewlens_core.models import PRContext

logger = logging.getLogger(__name__)

_BASE_BRANCHES = ("main", "master", "develop")
_GIT_TIMEOUT = 10


def _git(cwd: str, *args: str) -> str | None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=_GIT_TIMEOUT,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as e:
        logger.debug("git %s failed: %s", " ".join(args), e)
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def extract_pr_context_from_git(cwd: str) -> PRContext | None:
    if _git(cwd, "rev-parse", "--git-dir") is None:
        return None

    context = PRContext()
    found = False

    branch = _git(cwd, "rev-parse", "--abbrev-ref", "HEAD")
    if branch:
        context.branch = branch
        found = True

    for base in _BASE_BRANCHES:
        output = _git(cwd, "diff", "--name-only", f"{base}...HEAD")
        if output:
            context.changed_files = [line for line in output.splitlines() if line]
            context.base_branch = base
            found = True
            break

    message = _git(cwd, "log", "-1", "--pretty=%B")
    if message:
        context.description = message
        found = True

    author = _git(cwd, "log", "-1", "--pretty=%an")
    if author:
        context.author = author
        found = True

    return context if found else None
