"""Rule definitions, the registry that holds them, and the compiled rule set."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

from lintcrumb.errors import (
    ConfigError,
    DuplicateRuleError,
    RegistryFrozenError,
    UnknownRuleError,
)
from lintcrumb.models import Severity, SourceUnit, SymbolKind, Violation

if TYPE_CHECKING:
    from lintcrumb.config import RunConfig

log = logging.getLogger(__name__)

FILE_LEVEL: Final = "file-level"
ENGINE_FAILURE_ID: Final = "engine.rule-failure"

Check = Callable[["RuleContext", Any], Iterable[Violation] | None]


@dataclass(frozen=True)
class RuleDefinition:
    """A rule as a tagged record: metadata plus a plain check function.

    ``check`` receives a :class:`RuleContext` and either a Symbol or, for
    file-level rules, the SourceUnit. It returns the violations it found,
    built with ``ctx.violation``. ``message`` is a ``str.format`` template
    filled from the keyword arguments passed to ``ctx.violation``.
    """

    id: str
    default_severity: Severity
    applies_to: frozenset[SymbolKind] | str
    check: Check
    message: str
    description: str = ""
    thresholds: Mapping[str, int] = field(default_factory=dict)
    enabled_by_default: bool = True

    @property
    def file_level(self) -> bool:
        return self.applies_to == FILE_LEVEL

    def applies(self, kind: SymbolKind) -> bool:
        return not self.file_level and kind in self.applies_to


@dataclass(frozen=True)
class RuleContext:
    """What a rule sees while evaluating one target in one unit."""

    rule: RuleDefinition
    severity: Severity
    unit: SourceUnit
    thresholds: Mapping[str, int]

    def threshold(self, name: str) -> int:
        if name in self.thresholds:
            return self.thresholds[name]
        return self.rule.thresholds[name]

    def violation(self, line: int, **params: object) -> Violation:
        return Violation(
            path=self.unit.path,
            line=line,
            rule_id=self.rule.id,
            severity=self.severity,
            message=self.rule.message.format(**params),
        )


@dataclass(frozen=True)
class RuleSet:
    """The enabled rules of a run, with severities and thresholds resolved.

    Built once before workers start and shared read-only between them.
    """

    rules: tuple[RuleDefinition, ...]
    severities: Mapping[str, Severity]
    thresholds: Mapping[str, int]

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(rule.id for rule in self.rules)

    @property
    def symbol_rules(self) -> tuple[RuleDefinition, ...]:
        return tuple(rule for rule in self.rules if not rule.file_level)

    @property
    def file_rules(self) -> tuple[RuleDefinition, ...]:
        return tuple(rule for rule in self.rules if rule.file_level)

    def severity_for(self, rule_id: str) -> Severity:
        return self.severities[rule_id]

    def context(self, rule: RuleDefinition, unit: SourceUnit) -> RuleContext:
        return RuleContext(
            rule=rule,
            severity=self.severities[rule.id],
            unit=unit,
            thresholds=self.thresholds,
        )


class RuleRegistry:
    """The closed set of rules available in a run, keyed by rule id.

    Registration happens at startup only. Compiling a rule set freezes the
    registry; later ``register`` calls raise RegistryFrozenError.
    """

    def __init__(self, rules: Iterable[RuleDefinition] = ()) -> None:
        self._rules: dict[str, RuleDefinition] = {}
        self._frozen = False
        for rule in rules:
            self.register(rule)

    def register(self, rule: RuleDefinition) -> None:
        if self._frozen:
            msg = f"cannot register '{rule.id}': registry is frozen"
            raise RegistryFrozenError(msg)
        if rule.id == ENGINE_FAILURE_ID:
            raise DuplicateRuleError(rule.id, "is reserved for the engine")
        if rule.id in self._rules:
            raise DuplicateRuleError(rule.id)
        self._rules[rule.id] = rule

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, rule_id: str) -> RuleDefinition | None:
        return self._rules.get(rule_id)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[RuleDefinition]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def default_ids(self) -> frozenset[str]:
        return frozenset(r.id for r in self._rules.values() if r.enabled_by_default)

    def resolve(self, enabled_ids: Iterable[str]) -> tuple[RuleDefinition, ...]:
        """Return the definitions for ``enabled_ids`` in registration order.

        Raises:
            UnknownRuleError: If any id has no registered definition.
        """
        wanted = set(enabled_ids)
        unknown = [rule_id for rule_id in wanted if rule_id not in self._rules]
        if unknown:
            raise UnknownRuleError(unknown)
        return tuple(rule for rule in self._rules.values() if rule.id in wanted)

    def compile(self, config: RunConfig) -> RuleSet:
        """Validate ``config`` against the registry and build the RuleSet.

        Raises:
            UnknownRuleError: If the config names a rule id that is not
                registered (in the enabled set, enable/disable lists or
                severity overrides).
            ConfigError: If a threshold name is not declared by any rule.
        """
        base = (
            config.enabled_rule_ids
            if config.enabled_rule_ids is not None
            else self.default_ids()
        )
        mentioned = (
            set(base)
            | config.enable
            | config.disable
            | (set(config.severity_overrides) - {ENGINE_FAILURE_ID})
        )
        unknown = [rule_id for rule_id in mentioned if rule_id not in self._rules]
        if unknown:
            raise UnknownRuleError(unknown)

        declared: dict[str, int] = {}
        for rule in self._rules.values():
            for name, default in rule.thresholds.items():
                declared.setdefault(name, default)
        undeclared = sorted(set(config.thresholds) - set(declared))
        if undeclared:
            msg = f"unknown threshold(s): {', '.join(undeclared)}"
            raise ConfigError(msg)

        rules = self.resolve((set(base) | config.enable) - config.disable)
        severities = {
            rule.id: config.severity_overrides.get(rule.id, rule.default_severity)
            for rule in rules
        }
        severities[ENGINE_FAILURE_ID] = config.severity_overrides.get(
            ENGINE_FAILURE_ID, Severity.ERROR
        )
        thresholds = {**declared, **config.thresholds}

        self.freeze()
        log.debug("compiled rule set: %s", ", ".join(r.id for r in rules))
        return RuleSet(rules=rules, severities=severities, thresholds=thresholds)
