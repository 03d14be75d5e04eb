"""Built-in review rules.

Rules are rendered into the agent prompt; they steer what the agent looks
for but are not enforced by any local analysis.
"""

from __future__ import annotations

from typing import Iterable

from reviewlens_core.models import Category, ReviewRule, Severity

_C, _S = Category, Severity

DEFAULT_RULES: list[ReviewRule] = [
    # Security
    ReviewRule(
        "security-no-hardcoded-secrets",
        "No Hardcoded Secrets",
        "Detect hardcoded API keys, passwords, tokens, or secrets",
        _S.CRITICAL,
        _C.SECURITY,
    ),
    ReviewRule(
        "security-sql-injection",
        "SQL Injection Prevention",
        "Check for potential SQL injection vulnerabilities",
        _S.CRITICAL,
        _C.SECURITY,
    ),
    ReviewRule(
        "security-xss",
        "XSS Prevention",
        "Check for potential Cross-Site Scripting vulnerabilities",
        _S.CRITICAL,
        _C.SECURITY,
    ),
    ReviewRule(
        "security-command-injection",
        "Command Injection Prevention",
        "Check for potential command injection vulnerabilities",
        _S.CRITICAL,
        _C.SECURITY,
    ),
    # Performance
    ReviewRule(
        "performance-inefficient-loops",
        "Inefficient Loops",
        "Detect inefficient loop patterns and nested iterations",
        _S.WARNING,
        _C.PERFORMANCE,
    ),
    ReviewRule(
        "performance-memory-leaks",
        "Potential Memory Leaks",
        "Identify patterns that could lead to memory leaks",
        _S.ERROR,
        _C.PERFORMANCE,
    ),
    ReviewRule(
        "performance-unnecessary-computations",
        "Unnecessary Computations",
        "Flag redundant or repeated computations that can be optimized",
        _S.INFO,
        _C.PERFORMANCE,
    ),
    # Bugs
    ReviewRule(
        "bugs-null-reference",
        "Null Reference Errors",
        "Detect potential null or undefined reference errors",
        _S.ERROR,
        _C.BUGS,
    ),
    ReviewRule(
        "bugs-type-errors",
        "Type Errors",
        "Identify potential type mismatches and coercion issues",
        _S.ERROR,
        _C.BUGS,
    ),
    ReviewRule(
        "bugs-logic-errors",
        "Logic Errors",
        "Detect potential logic errors in conditionals and loops",
        _S.ERROR,
        _C.BUGS,
    ),
    # Best practices
    ReviewRule(
        "best-practices-error-handling",
        "Proper Error Handling",
        "Ensure errors are properly caught and handled",
        _S.WARNING,
        _C.BEST_PRACTICES,
    ),
    ReviewRule(
        "best-practices-async-await",
        "Async/Await Usage",
        "Check for proper async/await usage and missing awaits",
        _S.WARNING,
        _C.BEST_PRACTICES,
    ),
    ReviewRule(
        "best-practices-immutability",
        "Immutability",
        "Prefer immutable data structures and avoid shared mutable state",
        _S.INFO,
        _C.BEST_PRACTICES,
    ),
    # Maintainability
    ReviewRule(
        "maintainability-complexity",
        "High Complexity",
        "Flag functions with high cyclomatic complexity",
        _S.WARNING,
        _C.MAINTAINABILITY,
    ),
    ReviewRule(
        "maintainability-function-length",
        "Long Functions",
        "Identify functions that are too long and should be split",
        _S.INFO,
        _C.MAINTAINABILITY,
    ),
    ReviewRule(
        "maintainability-duplication",
        "Code Duplication",
        "Detect duplicated code that should be extracted",
        _S.WARNING,
        _C.MAINTAINABILITY,
    ),
    # Documentation
    ReviewRule(
        "documentation-missing-comments",
        "Missing Documentation",
        "Identify complex code lacking explanatory comments or docstrings",
        _S.INFO,
        _C.DOCUMENTATION,
    ),
    ReviewRule(
        "documentation-outdated-comments",
        "Outdated Comments",
        "Flag comments that no longer match the code they describe",
        _S.INFO,
        _C.DOCUMENTATION,
    ),
    # Style
    ReviewRule(
        "style-naming-conventions",
        "Naming Conventions",
        "Check that identifiers follow the project's naming conventions",
        _S.INFO,
        _C.STYLE,
    ),
    ReviewRule(
        "style-code-formatting",
        "Code Formatting",
        "Check for consistent code formatting",
        _S.INFO,
        _C.STYLE,
    ),
]


def get_enabled_rules() -> list[ReviewRule]:
    return [r for r in DEFAULT_RULES if r.enabled]


def get_rules_by_category(category: str) -> list[ReviewRule]:
    return [r for r in DEFAULT_RULES if r.category.value == category]


def get_rules_by_severity(severity: str) -> list[ReviewRule]:
    return [r for r in DEFAULT_RULES if r.severity.value == severity]


def get_rule_by_id(rule_id: str) -> ReviewRule | None:
    return next((r for r in DEFAULT_RULES if r.id == rule_id), None)


def merge_rules(defaults: Iterable[ReviewRule], overrides: Iterable[ReviewRule]) -> list[ReviewRule]:
    """Merge rule sets by id and return only the enabled rules.

    An override replaces the default with the same id wholesale (fields are
    not merged), so a user rule with ``enabled: false`` removes that id from
    the active set. Unknown ids are added.
    """
    by_id: dict[str, ReviewRule] = {r.id: r for r in defaults}
    for rule in overrides:
        by_id[rule.id] = rule
    return [r for r in by_id.values() if r.enabled]
