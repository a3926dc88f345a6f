"""Exception hierarchy for lintcrumb.

Configuration errors are fatal and raised before any file is read.
Per-file and per-rule failures are caught and surfaced in the report.
"""

from __future__ import annotations


class LintcrumbError(Exception):
    """Base class for all lintcrumb errors."""


class ConfigError(LintcrumbError):
    """Raised when the run configuration is invalid or cannot be loaded."""


class UnknownRuleError(ConfigError):
    """Raised when configuration names rule ids the registry does not hold."""

    def __init__(self, rule_ids: list[str]) -> None:
        self.rule_ids = sorted(rule_ids)
        super().__init__(f"unknown rule id(s): {', '.join(self.rule_ids)}")


class DuplicateRuleError(ConfigError):
    """Raised when a rule id is registered twice or collides with a reserved id."""

    def __init__(self, rule_id: str, reason: str = "already registered") -> None:
        self.rule_id = rule_id
        super().__init__(f"rule id '{rule_id}' {reason}")


class RegistryFrozenError(LintcrumbError):
    """Raised when registering into a registry that has been compiled."""


class RuleEvaluationFailure(LintcrumbError):
    """A single rule crashed while evaluating a single target."""

    def __init__(self, rule_id: str, target: str, cause: BaseException) -> None:
        self.rule_id = rule_id
        self.target = target
        self.cause = cause
        super().__init__(
            f"rule '{rule_id}' failed on '{target}': {type(cause).__name__}: {cause}"
        )


class IOUnavailable(LintcrumbError):
    """Raised when a listed file cannot be read."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"cannot read {path}: {cause}")
