import os
from pathlib import Path
from typing import Optional

import yaml

from reviewlens_core.models import ReviewConfig, ReviewRule, Severity
from reviewlens_core.rules import DEFAULT_RULES, merge_rules

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

# Always excluded. User patterns are appended to this list, never substituted
# for it, so a custom exclude list cannot re-include dependency or VCS trees.
BASELINE_EXCLUDE_PATTERNS: list[str] = [
    "node_modules/**",
    "dist/**",
    "build/**",
    "*.min.js",
    "*.bundle.js",
    "coverage/**",
    ".git/**",
    "*.log",
]

DEFAULT_INCLUDE_PATTERNS: list[str] = ["**/*.ts", "**/*.js", "**/*.tsx", "**/*.jsx", "**/*.py"]

DEFAULT_CONFIG: dict = {
    "model": DEFAULT_MODEL,
    "max_files": 50,
    "max_budget_usd": 5.0,
    "include": None,  # None = DEFAULT_INCLUDE_PATTERNS
    "exclude": [],  # appended to BASELINE_EXCLUDE_PATTERNS
    "severity_threshold": "info",
    "rules": [],  # overrides for DEFAULT_RULES, keyed by id
    "cwd": None,  # None = current working directory
    "verbose": False,
    "detect_git_context": True,
    "log_level": "info",
    "enable_audit_log": False,
    "audit_log_path": None,
}

# Environment variable → (config key, parser)
_ENV_SETTINGS = {
    "MAX_FILES_PER_REVIEW": ("max_files", int),
    "MAX_BUDGET_USD": ("max_budget_usd", float),
    "MODEL": ("model", str),
    "LOG_LEVEL": ("log_level", str),
    "ENABLE_AUDIT_LOG": ("enable_audit_log", lambda v: v.strip().lower() == "true"),
    "AUDIT_LOG_PATH": ("audit_log_path", str),
}


class ConfigurationError(ValueError):
    """Raised before a review starts when the configuration cannot be used."""


def load_config(config_path: str = ".reviewlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. Environment variables (MAX_FILES_PER_REVIEW, MAX_BUDGET_USD, MODEL, ...)
      3. .reviewlens.yml in the current directory
      4. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "exclude": list(DEFAULT_CONFIG["exclude"]), "rules": list(DEFAULT_CONFIG["rules"])}

    for env_name, (key, parse) in _ENV_SETTINGS.items():
        raw = os.environ.get(env_name)
        if raw:
            try:
                config[key] = parse(raw)
            except ValueError:
                raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}")

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping at the top level.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config


def merge_exclude_patterns(user_patterns: Optional[list[str]]) -> list[str]:
    merged = list(BASELINE_EXCLUDE_PATTERNS)
    for pattern in user_patterns or []:
        if pattern not in merged:
            merged.append(pattern)
    return merged


def parse_severity(value: Optional[str]) -> Optional[Severity]:
    if value is None or value == "":
        return None
    if isinstance(value, Severity):
        return value
    try:
        return Severity(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(s.value for s in Severity)
        raise ConfigurationError(f"Unknown severity threshold {value!r}. Choose one of: {choices}.")


def build_config(settings: Optional[dict] = None) -> ReviewConfig:
    """Resolve a settings mapping (as returned by load_config) into a ReviewConfig.

    Missing keys fall back to DEFAULT_CONFIG. Rules under ``rules`` replace
    default rules by id; exclude patterns are appended to the baseline.
    Numeric bounds are validated here so an invalid config never reaches the
    prompt or the agent.
    """
    settings = {**DEFAULT_CONFIG, **(settings or {})}

    try:
        user_rules = [r if isinstance(r, ReviewRule) else ReviewRule.from_dict(r) for r in settings.get("rules") or []]
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid rule in configuration: {e}")

    include = settings.get("include")
    config = ReviewConfig(
        max_files=settings["max_files"],
        max_budget_usd=settings["max_budget_usd"],
        model=settings.get("model") or DEFAULT_MODEL,
        include_patterns=list(include) if include else list(DEFAULT_INCLUDE_PATTERNS),
        exclude_patterns=merge_exclude_patterns(settings.get("exclude")),
        rules=merge_rules(DEFAULT_RULES, user_rules),
        cwd=str(settings.get("cwd") or os.getcwd()),
        severity_threshold=parse_severity(settings.get("severity_threshold")),
        verbose=bool(settings.get("verbose")),
        pr_context=settings.get("pr_context"),
        detect_git_context=bool(settings.get("detect_git_context", True)),
    )
    _validate_bounds(config)
    return config


def _validate_bounds(config: ReviewConfig) -> None:
    if not isinstance(config.max_files, int) or config.max_files <= 0:
        raise ConfigurationError("max_files must be greater than 0")
    if not isinstance(config.max_budget_usd, (int, float)) or config.max_budget_usd <= 0:
        raise ConfigurationError("max_budget_usd must be greater than 0")


def validate_config(config: ReviewConfig, api_key: Optional[str]) -> None:
    """Fail fast on anything that must prevent a review from starting."""
    _validate_bounds(config)
    if not api_key:
        raise ConfigurationError("ANTHROPIC_API_KEY environment variable is required")


def get_api_key(config: dict) -> str:
    api_key = config.get("anthropic_api_key") or os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise ConfigurationError("ANTHROPIC_API_KEY environment variable is required")
    return api_key
