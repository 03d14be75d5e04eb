"""Review data model.

Severities, categories and statuses are closed ``str`` enums so internal
logic (ordering, counters, status precedence) branches on a fixed set, while
the normalizer is free to accept open-ended text at the boundary and map it
down onto these values.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER = [Severity.INFO, Severity.WARNING, Severity.ERROR, Severity.CRITICAL]


class Category(str, Enum):
    SECURITY = "security"
    PERFORMANCE = "performance"
    MAINTAINABILITY = "maintainability"
    BEST_PRACTICES = "best-practices"
    BUGS = "bugs"
    STYLE = "style"
    DOCUMENTATION = "documentation"


class ReviewStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


@dataclass(frozen=True)
class ReviewRule:
    id: str
    name: str
    description: str
    severity: Severity
    category: Category
    enabled: bool = True

    @classmethod
    def from_dict(cls, d: dict) -> ReviewRule:
        """Build a rule from a config-file mapping (e.g. an entry under ``rules:``)."""
        missing = [k for k in ("id", "name", "description", "severity", "category") if k not in d]
        if missing:
            raise ValueError(f"Rule is missing required field(s): {', '.join(missing)}")
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            description=str(d["description"]),
            severity=Severity(str(d["severity"]).lower()),
            category=Category(str(d["category"]).lower()),
            enabled=bool(d.get("enabled", True)),
        )


@dataclass
class FileDiff:
    filename: str
    status: str  # "added" | "modified" | "removed" | "renamed"
    additions: int = 0
    deletions: int = 0
    patch: Optional[str] = None


@dataclass
class PRContext:
    """Metadata describing a pending change set.

    Every field is optional; the prompt assembler omits absent fields rather
    than substituting placeholder text.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    number: Optional[int] = None
    author: Optional[str] = None
    branch: Optional[str] = None
    base_branch: Optional[str] = None
    changed_files: list[str] = field(default_factory=list)
    file_diffs: list[FileDiff] = field(default_factory=list)


@dataclass
class ReviewConfig:
    max_files: int
    max_budget_usd: float
    model: str
    include_patterns: list[str]
    exclude_patterns: list[str]
    rules: list[ReviewRule]
    cwd: str
    severity_threshold: Optional[Severity] = Severity.INFO
    verbose: bool = False
    pr_context: Optional[PRContext] = None
    detect_git_context: bool = True


@dataclass(frozen=True)
class ReviewIssue:
    rule_id: str
    severity: Severity
    category: Category
    file_path: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None
    suggestion: Optional[str] = None
    snippet: Optional[str] = None
    impact: Optional[str] = None


@dataclass(frozen=True)
class EdgeCase:
    scenario: str
    handled: bool = False
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class ImpactAnalysis:
    breaking_changes: list[str] = field(default_factory=list)
    affected_files: list[str] = field(default_factory=list)
    integration_impact: str = ""
    performance_impact: str = ""
    security_impact: str = ""


@dataclass(frozen=True)
class ReviewStats:
    total_files: int
    total_issues: int
    issues_by_severity: dict[str, int]
    issues_by_category: dict[str, int]
    total_cost_usd: float = 0.0
    duration_ms: int = 0


@dataclass(frozen=True)
class ReviewMetadata:
    start_time: str  # ISO-8601 UTC
    end_time: str  # ISO-8601 UTC
    model: str
    session_id: str
    config: ReviewConfig


@dataclass(frozen=True)
class ReviewResult:
    """The caller-visible outcome of one review invocation.

    ``issues`` holds the threshold-filtered list; ``stats`` and ``status`` are
    computed from the full, unfiltered set.
    """

    status: ReviewStatus
    summary: str
    issues: list[ReviewIssue]
    files_reviewed: list[str]
    files_skipped: list[str]
    stats: ReviewStats
    metadata: ReviewMetadata
    pr_intent: Optional[str] = None
    impact_analysis: Optional[ImpactAnalysis] = None
    edge_cases: list[EdgeCase] = field(default_factory=list)
    missing_tests: list[str] = field(default_factory=list)
    missing_documentation: list[str] = field(default_factory=list)
    positives: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self, dict_factory=_enum_safe_dict)


def _enum_safe_dict(items: list[tuple]) -> dict:
    return {key: (value.value if isinstance(value, Enum) else value) for key, value in items}
