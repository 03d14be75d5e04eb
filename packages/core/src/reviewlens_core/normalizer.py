"""Tolerant normalization of the agent's free-text answer.

Extraction (locating a JSON object in the text) is kept separate from
interpretation (mapping its fields onto ReviewIssue and friends) so each
can be tested on its own. Neither step raises: anything that cannot be
understood degrades to an empty review, which is a valid outcome.

The extraction heuristic takes the span from the first "{" to the last "}".
It assumes the agent emits one top-level object as its last major block and
is knowingly fragile against prose that contains stray braces before it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from reviewlens_core.models import Category, EdgeCase, ImpactAnalysis, ReviewIssue, Severity

logger = logging.getLogger(__name__)

DEFAULT_RULE_ID = "general"

_SEVERITY_ALIASES = {
    "critical": Severity.CRITICAL,
    "high": Severity.CRITICAL,
    "error": Severity.ERROR,
    "medium": Severity.ERROR,
    "warning": Severity.WARNING,
    "low": Severity.WARNING,
}

# Substring → category, checked in this order; the first hit wins.
_CATEGORY_KEYWORDS = [
    ("security", Category.SECURITY),
    ("performance", Category.PERFORMANCE),
    ("bug", Category.BUGS),
    ("maintainability", Category.MAINTAINABILITY),
    ("documentation", Category.DOCUMENTATION),
    ("style", Category.STYLE),
]


@dataclass
class NormalizedReview:
    issues: list[ReviewIssue] = field(default_factory=list)
    files_reviewed: list[str] = field(default_factory=list)
    files_skipped: list[str] = field(default_factory=list)
    pr_intent: Optional[str] = None
    impact_analysis: Optional[ImpactAnalysis] = None
    edge_cases: list[EdgeCase] = field(default_factory=list)
    missing_tests: list[str] = field(default_factory=list)
    missing_documentation: list[str] = field(default_factory=list)
    positives: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


def extract_json_object(text: str) -> Optional[dict]:
    """Return the object spanning the first "{" to the last "}", or None."""
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        parsed = json.loads(text[start : end + 1])
    except (ValueError, RecursionError) as e:
        logger.warning("Failed to parse review JSON (%s): %s", e, text[start : start + 200])
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def map_severity(value: Any) -> Severity:
    """HIGH/CRITICAL → critical, MEDIUM/ERROR → error, LOW/WARNING → warning, else info."""
    if not isinstance(value, str):
        return Severity.INFO
    return _SEVERITY_ALIASES.get(value.strip().lower(), Severity.INFO)


def map_category(value: Any) -> Category:
    if not isinstance(value, str) or not value.strip():
        return Category.BEST_PRACTICES
    lowered = value.lower()
    for keyword, category in _CATEGORY_KEYWORDS:
        if keyword in lowered:
            return category
    return Category.BEST_PRACTICES


def _first(raw: dict, *keys: str) -> Any:
    """Value of the first key present with a non-None value."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _opt_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and not isinstance(v, (dict, list))]


def normalize_issue(raw: dict) -> ReviewIssue:
    return ReviewIssue(
        rule_id=_opt_str(_first(raw, "ruleId", "rule_id")) or DEFAULT_RULE_ID,
        severity=map_severity(raw.get("severity")),
        category=map_category(raw.get("category")),
        file_path=_opt_str(_first(raw, "filePath", "file")) or "",
        message=_opt_str(_first(raw, "message", "description")) or "",
        line=_opt_int(raw.get("line")),
        column=_opt_int(raw.get("column")),
        suggestion=_opt_str(_first(raw, "suggestion", "recommendation")),
        snippet=_opt_str(raw.get("snippet")),
        impact=_opt_str(raw.get("impact")),
    )


def _normalize_impact(raw: Any) -> Optional[ImpactAnalysis]:
    if not isinstance(raw, dict):
        return None
    return ImpactAnalysis(
        breaking_changes=_str_list(raw.get("breakingChanges")),
        affected_files=_str_list(raw.get("affectedFiles")),
        integration_impact=_opt_str(raw.get("integrationImpact")) or "",
        performance_impact=_opt_str(raw.get("performanceImpact")) or "",
        security_impact=_opt_str(raw.get("securityImpact")) or "",
    )


def _normalize_edge_cases(raw: Any) -> list[EdgeCase]:
    if not isinstance(raw, list):
        return []
    cases = []
    for item in raw:
        if isinstance(item, dict) and _opt_str(item.get("scenario")):
            cases.append(
                EdgeCase(
                    scenario=_opt_str(item.get("scenario")),
                    handled=item.get("handled") is True,
                    recommendation=_opt_str(item.get("recommendation")),
                )
            )
        elif isinstance(item, str) and item.strip():
            cases.append(EdgeCase(scenario=item.strip()))
    return cases


def normalize_result(text: str) -> NormalizedReview:
    """Map the agent's terminal text onto a NormalizedReview. Never raises."""
    parsed = extract_json_object(text)
    if parsed is None:
        if text:
            logger.warning("No structured review found in agent output; returning an empty review.")
        return NormalizedReview()

    raw_issues = parsed.get("issues")
    issues = [normalize_issue(i) for i in raw_issues if isinstance(i, dict)] if isinstance(raw_issues, list) else []

    # Older answers nest positives/recommendations under "summary".
    summary = parsed.get("summary") if isinstance(parsed.get("summary"), dict) else {}

    return NormalizedReview(
        issues=issues,
        files_reviewed=_str_list(parsed.get("filesReviewed")),
        files_skipped=_str_list(parsed.get("filesSkipped")),
        pr_intent=_opt_str(parsed.get("prIntent")),
        impact_analysis=_normalize_impact(parsed.get("impactAnalysis")),
        edge_cases=_normalize_edge_cases(parsed.get("edgeCases")),
        missing_tests=_str_list(parsed.get("missingTests")),
        missing_documentation=_str_list(parsed.get("missingDocumentation")),
        positives=_str_list(_first(parsed, "positives") or summary.get("positiveFindings")),
        recommendations=_str_list(_first(parsed, "recommendations") or summary.get("recommendations")),
    )
