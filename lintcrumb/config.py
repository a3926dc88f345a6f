"""Run configuration: the resolved object the core consumes, and its TOML loader."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError

from lintcrumb.errors import ConfigError
from lintcrumb.models import Severity

CONFIG_FILENAME = "lintcrumb.toml"
PYPROJECT_FILENAME = "pyproject.toml"

SeverityName = Literal["info", "warning", "error"]


@dataclass(frozen=True)
class RunConfig:
    """Resolved configuration for one run.

    ``enabled_rule_ids`` of None means the registry's default rule set;
    ``enable`` and ``disable`` adjust whichever base set applies.
    Severity values may be given as strings and are coerced on creation.
    """

    enabled_rule_ids: frozenset[str] | None = None
    enable: frozenset[str] = frozenset()
    disable: frozenset[str] = frozenset()
    severity_overrides: Mapping[str, Severity] = field(default_factory=dict)
    thresholds: Mapping[str, int] = field(default_factory=dict)
    fail_on: Severity = Severity.ERROR
    extra_ignores: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        overrides = {
            rule_id: _coerce_severity(value, f"severity for '{rule_id}'")
            for rule_id, value in self.severity_overrides.items()
        }
        object.__setattr__(self, "severity_overrides", overrides)
        object.__setattr__(self, "fail_on", _coerce_severity(self.fail_on, "fail_on"))
        if self.enabled_rule_ids is not None:
            enabled = frozenset(self.enabled_rule_ids)
            object.__setattr__(self, "enabled_rule_ids", enabled)
        object.__setattr__(self, "enable", frozenset(self.enable))
        object.__setattr__(self, "disable", frozenset(self.disable))
        object.__setattr__(self, "extra_ignores", tuple(self.extra_ignores))

        for name, value in self.thresholds.items():
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                msg = f"threshold '{name}' must be a positive integer, got {value!r}"
                raise ConfigError(msg)
        object.__setattr__(self, "thresholds", dict(self.thresholds))

    def with_rules(
        self,
        *,
        enable: Iterable[str] = (),
        disable: Iterable[str] = (),
    ) -> RunConfig:
        """Return a copy with extra rules enabled and/or disabled."""
        return dataclasses.replace(
            self,
            enable=self.enable | frozenset(enable),
            disable=self.disable | frozenset(disable),
        )


def _coerce_severity(value: Severity | str, what: str) -> Severity:
    if isinstance(value, Severity):
        return value
    try:
        return Severity(value)
    except ValueError as exc:
        valid = ", ".join(s.value for s in Severity)
        msg = f"invalid {what}: {value!r} (valid: {valid})"
        raise ConfigError(msg) from exc


class ConfigFile(BaseModel):
    """Schema of ``lintcrumb.toml`` and the ``[tool.lintcrumb]`` table."""

    model_config = ConfigDict(extra="forbid")

    rules: list[str] | None = Field(
        default=None,
        description="Exact set of enabled rule ids (omit for the defaults)",
    )
    enable: list[str] = Field(
        default_factory=list,
        description="Rule ids to enable on top of the base set",
    )
    disable: list[str] = Field(
        default_factory=list,
        description="Rule ids to disable",
    )
    severity: dict[str, SeverityName] = Field(
        default_factory=dict,
        description="Severity overrides: rule_id -> info|warning|error",
    )
    thresholds: dict[str, PositiveInt] = Field(
        default_factory=dict,
        description="Numeric rule thresholds, e.g. max_function_length",
    )
    fail_on: SeverityName = Field(
        default="error",
        description="Lowest severity that makes the run fail",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Gitignore-style patterns excluded from discovery",
    )

    def to_run_config(self) -> RunConfig:
        return RunConfig(
            enabled_rule_ids=frozenset(self.rules) if self.rules is not None else None,
            enable=frozenset(self.enable),
            disable=frozenset(self.disable),
            severity_overrides=dict(self.severity),
            thresholds=dict(self.thresholds),
            fail_on=self.fail_on,
            extra_ignores=tuple(self.exclude),
        )


def find_config(root: Path) -> Path | None:
    """Locate the config file for a repository root.

    ``lintcrumb.toml`` wins over a ``pyproject.toml`` that has a
    ``[tool.lintcrumb]`` table.
    """
    candidate = root / CONFIG_FILENAME
    if candidate.is_file():
        return candidate
    pyproject = root / PYPROJECT_FILENAME
    if pyproject.is_file() and _read_table(pyproject) is not None:
        return pyproject
    return None


def load_config(root: Path) -> RunConfig:
    """Load configuration for ``root``, or the defaults when none exists."""
    path = find_config(root)
    if path is None:
        return RunConfig()
    return load_config_file(path)


def load_config_file(path: Path) -> RunConfig:
    """Load and validate a single config file.

    Raises:
        ConfigError: If the file cannot be read, is not valid TOML, or
            does not match the schema.
    """
    data = _read_table(path)
    if data is None:
        return RunConfig()
    try:
        return ConfigFile.model_validate(data).to_run_config()
    except ValidationError as exc:
        msg = f"Invalid config in {path}: {exc}"
        raise ConfigError(msg) from exc


def _read_table(path: Path) -> dict[str, Any] | None:
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as exc:
        msg = f"Cannot read config {path}: {exc}"
        raise ConfigError(msg) from exc
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigError(msg) from exc

    if path.name == PYPROJECT_FILENAME:
        return data.get("tool", {}).get("lintcrumb")
    return data
