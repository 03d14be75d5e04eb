from __future__ import annotations

import logging

from github import Github, GithubException

from reviewlens_core.models import FileDiff, PRContext

logger = logging.getLogger(__name__)


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def list_changed_files(pr) -> list[FileDiff]:
    return [
        FileDiff(
            filename=f.filename,
            status=f.status,
            additions=f.additions or 0,
            deletions=f.deletions or 0,
            patch=f.patch,
        )
        for f in pr.get_files()
    ]


def get_pr_context(repo, pr_number: int) -> PRContext | None:
    """Build the PR context for a review, or None if the PR cannot be fetched.

    A failure to list the changed files is not fatal: the context is returned
    without diffs and the review proceeds on metadata alone.
    """
    try:
        pr = get_pull(repo, pr_number)
    except GithubException as e:
        logger.warning("Could not fetch PR #%s; reviewing without PR context: %s", pr_number, e)
        return None

    context = PRContext(
        title=pr.title or None,
        description=pr.body or None,
        number=pr.number,
        author=pr.user.login if pr.user else None,
        branch=pr.head.ref if pr.head else None,
        base_branch=pr.base.ref if pr.base else None,
    )
    try:
        context.file_diffs = list_changed_files(pr)
        context.changed_files = [d.filename for d in context.file_diffs]
    except GithubException as e:
        logger.warning("Could not list changed files for PR #%s: %s", pr_number, e)
    return context


def post_comment(pr, body: str) -> None:
    pr.create_issue_comment(body)
