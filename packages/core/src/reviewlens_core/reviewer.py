"""Core review orchestration.

    config → prompt → agent session → normalize → aggregate → ReviewResult

Configuration and prompt assembly are synchronous; the only suspension
points are the awaits on the agent's event stream. Normalization and
aggregation are pure functions over the collected session outcome, and the
ReviewResult is built once and returned without further mutation.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from reviewlens_audit.base import BaseAuditLog
from reviewlens_audit.noop import NoOpAuditLog
from reviewlens_core.aggregator import build_stats, build_summary, determine_status, filter_by_severity
from reviewlens_core.gh.git import extract_pr_context_from_git
from reviewlens_core.models import ReviewConfig, ReviewMetadata, ReviewResult
from reviewlens_core.normalizer import normalize_result
from reviewlens_core.prompt import build_review_prompt
from reviewlens_core.providers.base import READ_ONLY_TOOLS, AgentOptions, BaseAgent
from reviewlens_core.session import consume_session

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_agent_options(config: ReviewConfig) -> AgentOptions:
    return AgentOptions(
        allowed_tools=READ_ONLY_TOOLS,
        max_budget_usd=config.max_budget_usd,
        cwd=config.cwd,
        model=config.model,
    )


def _with_git_context(config: ReviewConfig) -> ReviewConfig:
    if config.pr_context is not None or not config.detect_git_context:
        return config
    git_context = extract_pr_context_from_git(config.cwd)
    if git_context is None:
        return config
    logger.info(
        "Extracted PR context from git (branch=%s, changed files=%d)",
        git_context.branch,
        len(git_context.changed_files),
    )
    return replace(config, pr_context=git_context)


async def run_review(
    target: str,
    config: ReviewConfig,
    agent: BaseAgent,
    audit: Optional[BaseAuditLog] = None,
) -> ReviewResult:
    """Run one review of ``target`` and return its ReviewResult.

    Raises only when the agent cannot be reached at all; every later
    failure (aborted stream, unparseable answer) degrades to a result built
    from whatever the session produced.
    """
    audit = audit or NoOpAuditLog()
    start_time = _now()
    logger.info("Starting code review for: %s", target)
    audit.record("review_start", target=target, model=config.model)

    config = _with_git_context(config)

    prompt = build_review_prompt(
        target,
        config.rules,
        pr_context=config.pr_context,
        include_patterns=config.include_patterns,
        exclude_patterns=config.exclude_patterns,
        max_files=config.max_files,
    )
    logger.debug("Review prompt is %d characters", len(prompt))

    try:
        outcome = await consume_session(
            agent.stream(prompt, build_agent_options(config)),
            audit=audit,
            verbose=config.verbose,
        )
    except Exception as e:
        logger.error("Code review failed: %s", e)
        audit.record("review_failed", error=f"{type(e).__name__}: {e}")
        raise

    normalized = normalize_result(outcome.result_text)
    issues = normalized.issues

    stats = build_stats(issues, normalized.files_reviewed, outcome.total_cost_usd, outcome.duration_ms)
    result = ReviewResult(
        status=determine_status(issues),
        summary=build_summary(
            stats.issues_by_severity,
            stats.total_issues,
            stats.total_files,
            normalized.pr_intent,
        ),
        issues=filter_by_severity(issues, config.severity_threshold),
        files_reviewed=normalized.files_reviewed,
        files_skipped=normalized.files_skipped,
        stats=stats,
        metadata=ReviewMetadata(
            start_time=start_time,
            end_time=_now(),
            model=config.model,
            session_id=outcome.session_id or "unknown",
            config=config,
        ),
        pr_intent=normalized.pr_intent,
        impact_analysis=normalized.impact_analysis,
        edge_cases=normalized.edge_cases,
        missing_tests=normalized.missing_tests,
        missing_documentation=normalized.missing_documentation,
        positives=normalized.positives,
        recommendations=normalized.recommendations,
    )

    logger.info(
        "Code review completed: %s (%d issue(s) across %d file(s), $%.4f)",
        result.status.value,
        stats.total_issues,
        stats.total_files,
        stats.total_cost_usd,
    )
    audit.record(
        "review_complete",
        session_id=outcome.session_id,
        status=result.status.value,
        total_issues=stats.total_issues,
        files_reviewed=stats.total_files,
        cost_usd=stats.total_cost_usd,
    )
    return result
