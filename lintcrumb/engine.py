"""Rule evaluation over a single SourceUnit."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lintcrumb.errors import RuleEvaluationFailure
from lintcrumb.models import SourceUnit, Symbol, Violation
from lintcrumb.registry import ENGINE_FAILURE_ID

if TYPE_CHECKING:
    from lintcrumb.registry import RuleDefinition, RuleSet

log = logging.getLogger(__name__)


def evaluate(unit: SourceUnit, ruleset: RuleSet) -> list[Violation]:
    """Run every applicable rule against ``unit``.

    Symbols are visited depth-first in document order, and for each one
    the symbol rules run in rule set order; file-level rules run once at
    the end. A rule that raises is isolated: its output for that target is
    dropped and an ``engine.rule-failure`` violation takes its place.
    Degraded units are evaluated the same way, over whatever symbols the
    front end recovered.

    Args:
        unit: An annotated SourceUnit.
        ruleset: The compiled rule set of the run.

    Returns:
        Violations in emission order.
    """
    violations: list[Violation] = []
    symbol_rules = ruleset.symbol_rules

    for _index, symbol in unit.walk():
        for rule in symbol_rules:
            if rule.applies(symbol.kind):
                violations.extend(_run_rule(rule, symbol, unit, ruleset))

    for rule in ruleset.file_rules:
        violations.extend(_run_rule(rule, unit, unit, ruleset))

    return violations


def _run_rule(
    rule: RuleDefinition,
    target: Symbol | SourceUnit,
    unit: SourceUnit,
    ruleset: RuleSet,
) -> list[Violation]:
    ctx = ruleset.context(rule, unit)
    try:
        return list(rule.check(ctx, target) or ())
    except Exception as exc:
        if isinstance(target, Symbol):
            name, line = unit.qualified_name(target), target.start_line
        else:
            name, line = unit.path, 1
        failure = RuleEvaluationFailure(rule.id, name, exc)
        log.warning("%s: %s", unit.path, failure)
        return [
            Violation(
                path=unit.path,
                line=line,
                rule_id=ENGINE_FAILURE_ID,
                severity=ruleset.severity_for(ENGINE_FAILURE_ID),
                message=str(failure),
            )
        ]
