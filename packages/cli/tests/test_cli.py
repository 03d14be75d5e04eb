"""Tests for the CLI entry point."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from github import GithubException
from rich.console import Console

from reviewlens_audit.jsonl import JsonlAuditLog
from reviewlens_audit.noop import NoOpAuditLog
from reviewlens_cli.cli import build_audit_log, configure_logging, main
from reviewlens_cli.commands.action import pr_context_from_event, should_fail, write_outputs
from reviewlens_cli.commands.review import exit_code_for
from reviewlens_core.aggregator import build_stats, determine_status
from reviewlens_core.config import ConfigurationError, build_config
from reviewlens_core.models import (
    Category,
    PRContext,
    ReviewIssue,
    ReviewMetadata,
    ReviewResult,
    ReviewStatus,
    Severity,
)

_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "GITHUB_TOKEN",
    "MAX_FILES_PER_REVIEW",
    "MAX_BUDGET_USD",
    "MODEL",
    "LOG_LEVEL",
    "ENABLE_AUDIT_LOG",
    "AUDIT_LOG_PATH",
    "GITHUB_EVENT_PATH",
    "GITHUB_REPOSITORY",
    "GITHUB_WORKSPACE",
    "GITHUB_OUTPUT",
    "REVIEWLENS_CONFIG",
)


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, mocker):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Leave the root logger alone during tests.
    mocker.patch("reviewlens_cli.cli.configure_logging")


@pytest.fixture
def wide_console(mocker):
    """Give rich tables room so assertions are not defeated by wrapping."""
    for module in ("rules", "config_cmd"):
        mocker.patch(f"reviewlens_cli.commands.{module}.console", Console(width=200))


def _issue(severity):
    return ReviewIssue(
        rule_id="bugs-logic-errors",
        severity=severity,
        category=Category.BUGS,
        file_path="src/app.py",
        message="Off-by-one in pagination",
        line=10,
    )


def _result(*severities):
    issues = [_issue(s) for s in severities]
    return ReviewResult(
        status=determine_status(issues),
        summary=f"Reviewed 1 file(s). Found {len(issues)} issue(s).",
        issues=issues,
        files_reviewed=["src/app.py"],
        files_skipped=[],
        stats=build_stats(issues, ["src/app.py"], total_cost_usd=0.05, duration_ms=1000),
        metadata=ReviewMetadata(
            start_time="2026-01-01T00:00:00+00:00",
            end_time="2026-01-01T00:00:01+00:00",
            model="claude-test",
            session_id="sess-1",
            config=build_config({"cwd": "/repo"}),
        ),
    )


def _invoke(tmp_path, args):
    return CliRunner().invoke(main, ["--config", str(tmp_path / "missing.yml"), *args])


class TestReviewCommand:
    def test_missing_api_key(self, tmp_path, mocker):
        mock_run = mocker.patch("reviewlens_cli.commands.review.execute_review")

        result = _invoke(tmp_path, ["review"])

        assert result.exit_code == 2
        assert "ANTHROPIC_API_KEY" in result.output
        mock_run.assert_not_called()

    def test_success_exits_zero(self, tmp_path, mocker, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        mocker.patch("reviewlens_cli.commands.review.execute_review", return_value=_result(Severity.WARNING))

        result = _invoke(tmp_path, ["review", "src", "--format", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["status"] == "success"
        assert data["issues"][0]["severity"] == "warning"

    def test_failure_status_exits_one(self, tmp_path, mocker, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        mocker.patch("reviewlens_cli.commands.review.execute_review", return_value=_result(Severity.CRITICAL))

        result = _invoke(tmp_path, ["review", "--format", "markdown"])

        assert result.exit_code == 1
        assert "FAILURE" in result.output

    def test_partial_status_honours_allow_partial(self, tmp_path, mocker, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        mocker.patch("reviewlens_cli.commands.review.execute_review", return_value=_result(Severity.ERROR))

        assert _invoke(tmp_path, ["review"]).exit_code == 1
        assert _invoke(tmp_path, ["review", "--allow-partial"]).exit_code == 0

    def test_options_reach_review_config(self, tmp_path, mocker, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        mock_run = mocker.patch("reviewlens_cli.commands.review.execute_review", return_value=_result())

        _invoke(
            tmp_path,
            [
                "review",
                "services",
                "--model",
                "claude-test",
                "--budget",
                "1.5",
                "--max-files",
                "5",
                "--severity",
                "error",
                "--include",
                "**/*.go",
                "--exclude",
                "*.pb.go",
            ],
        )

        mock_run.assert_called_once()
        target, config, api_key = mock_run.call_args.args
        assert target == "services"
        assert api_key == "sk-test"
        assert config.model == "claude-test"
        assert config.max_budget_usd == 1.5
        assert config.max_files == 5
        assert config.severity_threshold == Severity.ERROR
        assert config.include_patterns == ["**/*.go"]
        assert "*.pb.go" in config.exclude_patterns
        assert "node_modules/**" in config.exclude_patterns
        assert isinstance(mock_run.call_args.kwargs["audit"], NoOpAuditLog)

    def test_invalid_budget_is_usage_error(self, tmp_path, mocker, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        mock_run = mocker.patch("reviewlens_cli.commands.review.execute_review")

        result = _invoke(tmp_path, ["review", "--budget", "0"])

        assert result.exit_code == 2
        assert "max_budget_usd" in result.output
        mock_run.assert_not_called()

    def test_output_file_written(self, tmp_path, mocker, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        mocker.patch("reviewlens_cli.commands.review.execute_review", return_value=_result())
        out = tmp_path / "report.md"

        result = _invoke(tmp_path, ["review", "--format", "markdown", "--output", str(out)])

        assert result.exit_code == 0
        assert out.read_text().startswith("# Code Review Results")

    def test_agent_failure_exits_one(self, tmp_path, mocker, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        mocker.patch("reviewlens_cli.commands.review.execute_review", side_effect=ConnectionError("refused"))

        result = _invoke(tmp_path, ["review"])

        assert result.exit_code == 1
        assert "Review failed" in result.output

    def test_repo_requires_pr(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        result = _invoke(tmp_path, ["review", "--repo", "owner/repo"])
        assert result.exit_code == 2
        assert "--pr" in result.output

    def test_pr_context_fetched_from_github(self, tmp_path, mocker, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        mocker.patch("reviewlens_cli.auth.resolve_github_token", return_value="tok")
        mock_repo = mocker.patch("reviewlens_cli.commands.review.get_repo", return_value=MagicMock())
        mocker.patch(
            "reviewlens_cli.commands.review.get_pr_context",
            return_value=PRContext(title="Fix paging", number=42),
        )
        mock_run = mocker.patch("reviewlens_cli.commands.review.execute_review", return_value=_result())

        result = _invoke(tmp_path, ["review", "--repo", "owner/repo", "--pr", "42"])

        assert result.exit_code == 0
        mock_repo.assert_called_once_with("owner/repo", token="tok")
        config = mock_run.call_args.args[1]
        assert config.pr_context.number == 42

    def test_github_failure_reviews_without_pr_context(self, tmp_path, mocker, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        mocker.patch("reviewlens_cli.auth.resolve_github_token", return_value="bad")
        mocker.patch(
            "reviewlens_cli.commands.review.get_repo",
            side_effect=GithubException(401, {"message": "Bad credentials"}, None),
        )
        mock_run = mocker.patch("reviewlens_cli.commands.review.execute_review", return_value=_result())

        result = _invoke(tmp_path, ["review", "--repo", "owner/repo", "--pr", "42"])

        assert result.exit_code == 0
        mock_run.assert_called_once()
        assert mock_run.call_args.args[1].pr_context is None

    def test_pr_context_needs_token(self, tmp_path, mocker, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        mocker.patch("reviewlens_cli.auth.resolve_github_token", return_value=None)

        result = _invoke(tmp_path, ["review", "--repo", "owner/repo", "--pr", "42"])

        assert result.exit_code == 2
        assert "GitHub token" in result.output


class TestExitCodeFor:
    @pytest.mark.parametrize(
        "status,allow_partial,expected",
        [
            (ReviewStatus.SUCCESS, False, 0),
            (ReviewStatus.PARTIAL, False, 1),
            (ReviewStatus.PARTIAL, True, 0),
            (ReviewStatus.FAILURE, True, 1),
        ],
    )
    def test_table(self, status, allow_partial, expected):
        assert exit_code_for(status, allow_partial) == expected


class TestRulesCommand:
    def test_lists_all_rules(self, tmp_path, wide_console):
        result = _invoke(tmp_path, ["rules"])
        assert result.exit_code == 0
        assert "Review Rules (20)" in result.output
        assert "security-sql-injection" in result.output

    def test_filter_by_category(self, tmp_path, wide_console):
        result = _invoke(tmp_path, ["rules", "--category", "security"])
        assert "Review Rules (4)" in result.output
        assert "bugs-null-reference" not in result.output

    def test_filter_by_severity(self, tmp_path, wide_console):
        result = _invoke(tmp_path, ["rules", "--severity", "critical"])
        assert "Review Rules (4)" in result.output
        assert "style-naming-conventions" not in result.output

    def test_unknown_category_rejected(self, tmp_path):
        result = _invoke(tmp_path, ["rules", "--category", "vibes"])
        assert result.exit_code == 2


class TestConfigCommand:
    def test_shows_effective_values(self, tmp_path, wide_console):
        cfg = tmp_path / ".reviewlens.yml"
        cfg.write_text("max_files: 12\nexclude:\n  - '*.snap'\n")

        result = CliRunner().invoke(main, ["--config", str(cfg), "config"])

        assert result.exit_code == 0
        assert "12" in result.output
        assert "*.snap" in result.output
        assert "node_modules/**" in result.output

    def test_credentials_not_printed(self, tmp_path, monkeypatch, wide_console):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-very-secret")

        result = _invoke(tmp_path, ["config"])

        assert "sk-very-secret" not in result.output
        assert "Not set" in result.output  # GITHUB_TOKEN
        assert "Set" in result.output


class TestActionCommand:
    @pytest.fixture
    def workflow(self, tmp_path, monkeypatch):
        event = tmp_path / "event.json"
        event.write_text(
            json.dumps(
                {
                    "pull_request": {
                        "number": 5,
                        "title": "Add paging",
                        "body": "Adds cursor paging.",
                        "user": {"login": "octocat"},
                        "head": {"ref": "feature/paging"},
                        "base": {"ref": "main"},
                    }
                }
            )
        )
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        monkeypatch.setenv("GITHUB_EVENT_PATH", str(event))
        monkeypatch.setenv("GITHUB_WORKSPACE", str(tmp_path))
        monkeypatch.setenv("GITHUB_OUTPUT", str(tmp_path / "outputs"))
        return tmp_path

    def test_writes_reports_and_outputs(self, workflow, mocker):
        mocker.patch("reviewlens_cli.auth.resolve_github_token", return_value=None)
        mock_run = mocker.patch(
            "reviewlens_cli.commands.action.execute_review", return_value=_result(Severity.WARNING)
        )

        result = _invoke(workflow, ["action"])

        assert result.exit_code == 0
        assert (workflow / "code-review-report.md").read_text().startswith("# Code Review Results")
        assert json.loads((workflow / "review-result.json").read_text())["status"] == "success"
        outputs = (workflow / "outputs").read_text().splitlines()
        assert "status=success" in outputs
        assert "total-issues=1" in outputs
        assert "warning-count=1" in outputs
        assert f"report-file={workflow / 'code-review-report.md'}" in outputs

        config = mock_run.call_args.args[1]
        assert config.cwd == str(workflow)
        assert config.pr_context.number == 5
        assert config.pr_context.author == "octocat"

    def test_fails_on_critical_by_default(self, workflow, mocker):
        mocker.patch("reviewlens_cli.auth.resolve_github_token", return_value=None)
        mocker.patch("reviewlens_cli.commands.action.execute_review", return_value=_result(Severity.CRITICAL))

        result = _invoke(workflow, ["action"])

        assert result.exit_code == 1
        assert "critical-count=1" in (workflow / "outputs").read_text().splitlines()

    def test_fail_on_never(self, workflow, mocker):
        mocker.patch("reviewlens_cli.auth.resolve_github_token", return_value=None)
        mocker.patch("reviewlens_cli.commands.action.execute_review", return_value=_result(Severity.CRITICAL))

        assert _invoke(workflow, ["action", "--fail-on", "never"]).exit_code == 0

    def test_posts_comment_when_enabled(self, workflow, mocker, monkeypatch):
        monkeypatch.setenv("GITHUB_REPOSITORY", "owner/repo")
        mocker.patch("reviewlens_cli.auth.resolve_github_token", return_value="tok")
        mocker.patch("reviewlens_cli.commands.action.get_repo", return_value=MagicMock())
        mocker.patch("reviewlens_cli.commands.action.get_pr_context", return_value=PRContext(number=5, title="Add paging"))
        mock_pull = mocker.patch("reviewlens_cli.commands.action.get_pull", return_value=MagicMock())
        mock_post = mocker.patch("reviewlens_cli.commands.action.post_comment")
        mocker.patch("reviewlens_cli.commands.action.execute_review", return_value=_result())

        result = _invoke(workflow, ["action", "--comment"])

        assert result.exit_code == 0
        mock_pull.assert_called_once()
        body = mock_post.call_args.args[1]
        assert "AI Code Review Results" in body

    def test_github_failure_falls_back_to_event(self, workflow, mocker, monkeypatch):
        monkeypatch.setenv("GITHUB_REPOSITORY", "owner/repo")
        mocker.patch("reviewlens_cli.auth.resolve_github_token", return_value="bad")
        mocker.patch(
            "reviewlens_cli.commands.action.get_repo",
            side_effect=GithubException(401, {"message": "Bad credentials"}, None),
        )
        mock_post = mocker.patch("reviewlens_cli.commands.action.post_comment")
        mock_run = mocker.patch("reviewlens_cli.commands.action.execute_review", return_value=_result())

        result = _invoke(workflow, ["action", "--comment"])

        assert result.exit_code == 0
        config = mock_run.call_args.args[1]
        assert config.pr_context.number == 5
        assert config.pr_context.title == "Add paging"
        mock_post.assert_not_called()
        assert "skipping PR comment" in result.output

    def test_event_without_pr_number(self, workflow, mocker, monkeypatch):
        (workflow / "event.json").write_text(json.dumps({"pull_request": {"title": "Draft"}}))
        monkeypatch.setenv("GITHUB_REPOSITORY", "owner/repo")
        mocker.patch("reviewlens_cli.auth.resolve_github_token", return_value="tok")
        mocker.patch("reviewlens_cli.commands.action.get_repo", return_value=MagicMock())
        mock_context = mocker.patch("reviewlens_cli.commands.action.get_pr_context")
        mock_post = mocker.patch("reviewlens_cli.commands.action.post_comment")
        mock_run = mocker.patch("reviewlens_cli.commands.action.execute_review", return_value=_result())

        result = _invoke(workflow, ["action", "--comment"])

        assert result.exit_code == 0
        mock_context.assert_not_called()
        mock_post.assert_not_called()
        assert mock_run.call_args.args[1].pr_context.title == "Draft"

    def test_agent_failure_fails_step(self, workflow, mocker):
        mocker.patch("reviewlens_cli.auth.resolve_github_token", return_value=None)
        mocker.patch("reviewlens_cli.commands.action.execute_review", side_effect=RuntimeError("boom"))

        result = _invoke(workflow, ["action"])

        assert result.exit_code == 1
        assert "Action failed" in result.output


class TestActionHelpers:
    @pytest.mark.parametrize(
        "severities,fail_on,expected",
        [
            ((Severity.CRITICAL,), "critical", True),
            ((Severity.ERROR,), "critical", False),
            ((Severity.ERROR,), "error", True),
            ((Severity.WARNING,), "error", False),
            ((Severity.WARNING,), "warning", True),
            ((Severity.INFO,), "warning", False),
            ((Severity.CRITICAL,), "never", False),
        ],
    )
    def test_should_fail(self, severities, fail_on, expected):
        assert should_fail(_result(*severities), fail_on) is expected

    def test_write_outputs_appends(self, tmp_path):
        out = tmp_path / "outputs"
        out.write_text("earlier=1\n")
        write_outputs({"status": "success", "total-issues": 0}, str(out))
        assert out.read_text() == "earlier=1\nstatus=success\ntotal-issues=0\n"

    def test_pr_context_from_event_tolerates_missing_fields(self):
        context = pr_context_from_event({"number": 3})
        assert context.number == 3
        assert context.author is None
        assert context.branch is None


class TestResolveGithubToken:
    def test_returns_env_var_when_set(self, monkeypatch):
        from reviewlens_cli.auth import resolve_github_token

        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert resolve_github_token() == "env-token"

    def test_falls_back_to_gh_cli(self):
        from reviewlens_cli.auth import resolve_github_token

        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="gh-token\n")
            result = resolve_github_token()
        assert result == "gh-token"

    def test_returns_none_when_gh_not_installed(self):
        from reviewlens_cli.auth import resolve_github_token

        with patch("subprocess.run", side_effect=FileNotFoundError):
            assert resolve_github_token() is None

    def test_returns_none_when_gh_times_out(self):
        from reviewlens_cli.auth import resolve_github_token

        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="gh", timeout=5)):
            assert resolve_github_token() is None

    def test_returns_none_when_gh_returns_error(self):
        from reviewlens_cli.auth import resolve_github_token

        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1, stdout="")
            assert resolve_github_token() is None


class TestBuildAuditLog:
    def test_noop_by_default(self):
        assert isinstance(build_audit_log({}), NoOpAuditLog)

    def test_jsonl_when_enabled(self, tmp_path):
        log = build_audit_log({"enable_audit_log": True, "audit_log_path": str(tmp_path / "a.log")})
        assert isinstance(log, JsonlAuditLog)
        assert log.path == tmp_path / "a.log"

    def test_default_path_when_none_given(self):
        log = build_audit_log({"enable_audit_log": True})
        assert log.path.parent.name == "logs"
        assert not log.path.exists()

    def test_group_enables_audit_from_env(self, tmp_path, monkeypatch, wide_console):
        monkeypatch.setenv("ENABLE_AUDIT_LOG", "true")
        monkeypatch.setenv("AUDIT_LOG_PATH", str(tmp_path / "audit.log"))

        result = _invoke(tmp_path, ["rules"])

        assert result.exit_code == 0
        assert not (tmp_path / "audit.log").exists()


class TestConfigureLogging:
    def test_unknown_level_rejected(self):
        with pytest.raises(ConfigurationError):
            configure_logging("chatty")

    def test_invalid_log_level_option(self, tmp_path):
        result = _invoke(tmp_path, ["--log-level", "chatty", "rules"])
        assert result.exit_code == 2
