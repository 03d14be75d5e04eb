"""Review prompt assembly.

The prompt is a single text blob and is a pure function of its inputs: no
timestamps, no randomness, stable ordering. Identical inputs always produce
identical prompts, which keeps agent behaviour reproducible and the
assembler testable.
"""

from __future__ import annotations

from typing import Iterable, Optional

from reviewlens_core.models import FileDiff, PRContext, ReviewRule
from reviewlens_core.utils.paths import is_code_file, is_excluded, is_included

MAX_PROMPT_CHANGED_FILES = 100
MAX_PROMPT_DIFFS = 20
MAX_DIFF_BYTES = 4_000

DIFF_TRUNCATED_MARKER = "... [diff truncated]"

OUTPUT_SCHEMA_EXAMPLE = """{
  "prIntent": "One or two sentences on what the change is trying to achieve",
  "impactAnalysis": {
    "breakingChanges": ["Public API or behaviour that callers must adapt to"],
    "affectedFiles": ["path/to/dependent/file.ts"],
    "integrationImpact": "How the change affects other modules or services",
    "performanceImpact": "Expected performance effect, if any",
    "securityImpact": "Expected security effect, if any"
  },
  "issues": [
    {
      "ruleId": "security-sql-injection",
      "severity": "critical|error|warning|info",
      "category": "security|performance|bugs|best-practices|maintainability|documentation|style",
      "filePath": "path/to/file.ts",
      "line": 42,
      "column": 7,
      "message": "Clear description of the issue and why it matters",
      "suggestion": "Specific, actionable fix",
      "snippet": "the offending code",
      "impact": "What breaks if this is not fixed"
    }
  ],
  "edgeCases": [
    {"scenario": "Empty input list", "handled": false, "recommendation": "Return early"}
  ],
  "missingTests": ["Scenario that has no test coverage"],
  "missingDocumentation": ["Public function or behaviour that is undocumented"],
  "positives": ["Good practice worth keeping"],
  "recommendations": ["Prioritised improvement, most important first"],
  "filesReviewed": ["path/to/file.ts"],
  "filesSkipped": ["path/to/skipped.ts"]
}"""


def truncate_patch(patch: str, max_bytes: int = MAX_DIFF_BYTES) -> str:
    """Truncate a unified diff to at most ``max_bytes`` UTF-8 bytes.

    A truncated patch ends with DIFF_TRUNCATED_MARKER so the agent knows it is
    looking at a partial diff. Cuts never split a multi-byte character.
    """
    encoded = patch.encode("utf-8")
    if len(encoded) <= max_bytes:
        return patch
    head = encoded[:max_bytes].decode("utf-8", errors="ignore")
    return f"{head}\n{DIFF_TRUNCATED_MARKER}"


def _render_diff(diff: FileDiff, exclude_patterns: list[str], include_patterns: list[str]) -> str:
    header = f"#### `{diff.filename}` ({diff.status}, +{diff.additions} -{diff.deletions})"
    if is_excluded(diff.filename, exclude_patterns) or not is_code_file(diff.filename):
        return f"{header}\n_Diff omitted: file is excluded from review._"
    if not is_included(diff.filename, include_patterns):
        return f"{header}\n_Diff omitted: file is outside the include patterns._"
    if not diff.patch:
        return f"{header}\n_No textual diff available._"
    return f"{header}\n```diff\n{truncate_patch(diff.patch)}\n```"


def render_pr_context(
    pr_context: PRContext,
    exclude_patterns: Iterable[str] = (),
    include_patterns: Iterable[str] = (),
) -> str:
    """Render the pull-request section. Absent fields are omitted entirely."""
    exclude = list(exclude_patterns)
    include = list(include_patterns)
    lines = ["## Pull Request Context", ""]

    if pr_context.title:
        lines.append(f"**PR Title**: {pr_context.title}")
    if pr_context.number is not None:
        lines.append(f"**PR Number**: #{pr_context.number}")
    if pr_context.author:
        lines.append(f"**Author**: {pr_context.author}")
    if pr_context.branch:
        target = f" → {pr_context.base_branch}" if pr_context.base_branch else ""
        lines.append(f"**Branch**: {pr_context.branch}{target}")
    elif pr_context.base_branch:
        lines.append(f"**Base Branch**: {pr_context.base_branch}")
    if pr_context.description:
        lines.extend(["", "**PR Description**:", pr_context.description])

    if pr_context.changed_files:
        shown = pr_context.changed_files[:MAX_PROMPT_CHANGED_FILES]
        lines.extend(["", f"**Changed Files** ({len(pr_context.changed_files)}):"])
        lines.extend(f"- {f}" for f in shown)
        hidden = len(pr_context.changed_files) - len(shown)
        if hidden > 0:
            lines.append(f"- ... {hidden} more file(s) not listed")

    if pr_context.file_diffs:
        shown_diffs = pr_context.file_diffs[:MAX_PROMPT_DIFFS]
        lines.extend(["", "### File Diffs", ""])
        lines.append("\n\n".join(_render_diff(d, exclude, include) for d in shown_diffs))
        hidden = len(pr_context.file_diffs) - len(shown_diffs)
        if hidden > 0:
            lines.append(f"\n_... {hidden} more diff(s) not shown. Read those files directly if needed._")

    lines.extend(
        [
            "",
            "**Priority**: Review the changed files first, then follow their ripple effects into callers, "
            "dependents and tests. Use this context to understand the developer's intent and verify that the "
            "changes achieve the stated goals and handle the edge cases related to the PR's purpose.",
        ]
    )
    return "\n".join(lines)


def render_rules(rules: Iterable[ReviewRule]) -> str:
    blocks = [
        f"- **[{r.severity.value.upper()}] {r.name}** ({r.id})\n  Category: {r.category.value}\n  {r.description}"
        for r in rules
        if r.enabled
    ]
    return "\n\n".join(blocks) if blocks else "- No custom rules; apply general review judgement."


def build_review_prompt(
    target: str,
    rules: Iterable[ReviewRule],
    pr_context: Optional[PRContext] = None,
    include_patterns: Iterable[str] = (),
    exclude_patterns: Iterable[str] = (),
    max_files: int = 50,
) -> str:
    include = list(include_patterns)
    exclude = list(exclude_patterns)

    sections = []
    if pr_context is not None:
        sections.append(render_pr_context(pr_context, exclude, include))

    sections.append(
        f"""## Review Task

You are an expert code reviewer. Review the code at `{target}` and analyse it for:

1. **Security vulnerabilities**: injection, authorization bypasses, hardcoded secrets, path traversal, \
missing input validation.
2. **Bugs and edge cases**: null references, type errors, logic errors, race conditions, off-by-one errors, \
unhandled empty/large/concurrent inputs.
3. **Performance issues**: inefficient loops or algorithms, N+1 queries, memory leaks, missing pagination.
4. **Error-handling gaps**: swallowed errors, missing error paths, inconsistent error handling.
5. **Code quality**: missing tests, missing or outdated documentation, complexity, duplication.

You may only inspect the code: use Glob to discover files, Read to examine them and Grep to search. \
Do not modify any file and do not run any command."""
    )

    sections.append(f"## Review Rules\n\n{render_rules(rules)}")

    sections.append(
        f"""## Scope

- **Include patterns**: {", ".join(include) if include else "all source files"}
- **Exclude patterns**: {", ".join(exclude) if exclude else "none"}
- **Maximum files to review**: {max_files}"""
    )

    sections.append(
        f"""## Output Format

When you are done, respond with a single JSON object in exactly this shape and nothing after it:

```json
{OUTPUT_SCHEMA_EXAMPLE}
```

Only report real issues. If there are none, return an empty "issues" list."""
    )

    return "\n\n".join(sections) + "\n"
