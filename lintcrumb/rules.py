"""Built-in rules.

Every check is a module-level pure function of its target and context, so
rule sets stay picklable for process workers.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from lintcrumb.models import Severity, SourceUnit, Symbol, SymbolKind, Violation
from lintcrumb.registry import FILE_LEVEL, RuleContext, RuleDefinition, RuleRegistry

_FUNCTIONS = frozenset({SymbolKind.FUNCTION})
_CLASSES = frozenset({SymbolKind.CLASS})
_MODULES = frozenset({SymbolKind.MODULE})
_DOCUMENTED = frozenset({SymbolKind.FUNCTION, SymbolKind.CLASS})
_HANDLER_SCOPES = frozenset({SymbolKind.FUNCTION, SymbolKind.MODULE})

_SNAKE_CASE = re.compile(r"^_{0,2}[a-z][a-z0-9_]*$")
_DUNDER = re.compile(r"^__[a-z][a-z0-9_]*__$")
_CAP_WORDS = re.compile(r"^_?[A-Z][A-Za-z0-9]*$")


def check_missing_docstring(ctx: RuleContext, symbol: Symbol) -> Iterator[Violation]:
    if not symbol.has_docstring:
        yield ctx.violation(
            symbol.start_line,
            kind=symbol.kind.value,
            name=ctx.unit.qualified_name(symbol),
        )


def check_missing_annotation(ctx: RuleContext, symbol: Symbol) -> Iterator[Violation]:
    if symbol.parameter_count > 0 and not symbol.has_type_annotations:
        yield ctx.violation(symbol.start_line, name=ctx.unit.qualified_name(symbol))


def check_function_too_long(ctx: RuleContext, symbol: Symbol) -> Iterator[Violation]:
    limit = ctx.threshold("max_function_length")
    if symbol.body_line_count > limit:
        yield ctx.violation(
            symbol.start_line,
            name=ctx.unit.qualified_name(symbol),
            count=symbol.body_line_count,
            limit=limit,
        )


def check_nesting_too_deep(ctx: RuleContext, symbol: Symbol) -> Iterator[Violation]:
    limit = ctx.threshold("max_nesting_depth")
    if symbol.max_nesting_depth > limit:
        yield ctx.violation(
            symbol.start_line,
            name=ctx.unit.qualified_name(symbol),
            depth=symbol.max_nesting_depth,
            limit=limit,
        )


def check_mutable_default(ctx: RuleContext, symbol: Symbol) -> Iterator[Violation]:
    if "mutable-literal" in symbol.default_argument_kinds:
        yield ctx.violation(symbol.start_line, name=ctx.unit.qualified_name(symbol))


def check_bare_except(ctx: RuleContext, symbol: Symbol) -> Iterator[Violation]:
    for block in symbol.blocks:
        if block.kind == "handler" and block.catch_all:
            yield ctx.violation(block.start_line, name=ctx.unit.qualified_name(symbol))


def check_too_many_parameters(ctx: RuleContext, symbol: Symbol) -> Iterator[Violation]:
    limit = ctx.threshold("max_parameters")
    if symbol.parameter_count > limit:
        yield ctx.violation(
            symbol.start_line,
            name=ctx.unit.qualified_name(symbol),
            count=symbol.parameter_count,
            limit=limit,
        )


def check_too_many_branches(ctx: RuleContext, symbol: Symbol) -> Iterator[Violation]:
    limit = ctx.threshold("max_branches")
    if symbol.branch_count > limit:
        yield ctx.violation(
            symbol.start_line,
            name=ctx.unit.qualified_name(symbol),
            count=symbol.branch_count,
            limit=limit,
        )


def check_missing_module_docstring(
    ctx: RuleContext, symbol: Symbol
) -> Iterator[Violation]:
    if not symbol.has_docstring:
        yield ctx.violation(symbol.start_line, name=symbol.name)


def check_function_case(ctx: RuleContext, symbol: Symbol) -> Iterator[Violation]:
    if not (_SNAKE_CASE.match(symbol.name) or _DUNDER.match(symbol.name)):
        yield ctx.violation(symbol.start_line, name=symbol.name)


def check_class_case(ctx: RuleContext, symbol: Symbol) -> Iterator[Violation]:
    if not _CAP_WORDS.match(symbol.name):
        yield ctx.violation(symbol.start_line, name=symbol.name)


def check_file_too_long(ctx: RuleContext, unit: SourceUnit) -> Iterator[Violation]:
    limit = ctx.threshold("max_file_length")
    if unit.line_count > limit:
        yield ctx.violation(1, count=unit.line_count, limit=limit)


BUILTIN_RULES: tuple[RuleDefinition, ...] = (
    RuleDefinition(
        id="doc.missing-docstring",
        default_severity=Severity.WARNING,
        applies_to=_DOCUMENTED,
        check=check_missing_docstring,
        message="{kind} '{name}' is missing a docstring",
        description="Functions, methods and classes must be documented.",
    ),
    RuleDefinition(
        id="type.missing-annotation",
        default_severity=Severity.WARNING,
        applies_to=_FUNCTIONS,
        check=check_missing_annotation,
        message="function '{name}' has incomplete type annotations",
        description="Parameters and return values must be annotated.",
    ),
    RuleDefinition(
        id="complexity.function-too-long",
        default_severity=Severity.WARNING,
        applies_to=_FUNCTIONS,
        check=check_function_too_long,
        message="function '{name}' has {count} lines (limit {limit})",
        description="Function bodies must stay short.",
        thresholds={"max_function_length": 50},
    ),
    RuleDefinition(
        id="complexity.nesting-too-deep",
        default_severity=Severity.WARNING,
        applies_to=_FUNCTIONS,
        check=check_nesting_too_deep,
        message="function '{name}' nests {depth} levels deep (limit {limit})",
        description="Control flow must not nest too deeply.",
        thresholds={"max_nesting_depth": 4},
    ),
    RuleDefinition(
        id="style.mutable-default-argument",
        default_severity=Severity.WARNING,
        applies_to=_FUNCTIONS,
        check=check_mutable_default,
        message="function '{name}' uses a mutable literal as a default argument",
        description="Default argument values must not be mutable literals.",
    ),
    RuleDefinition(
        id="style.bare-exception-handler",
        default_severity=Severity.WARNING,
        applies_to=_HANDLER_SCOPES,
        check=check_bare_except,
        message="'{name}' has a catch-all exception handler",
        description="Exception handlers must name what they catch.",
    ),
    RuleDefinition(
        id="complexity.too-many-parameters",
        default_severity=Severity.WARNING,
        applies_to=_FUNCTIONS,
        check=check_too_many_parameters,
        message="function '{name}' takes {count} parameters (limit {limit})",
        description="Functions must not take too many parameters.",
        thresholds={"max_parameters": 5},
        enabled_by_default=False,
    ),
    RuleDefinition(
        id="complexity.too-many-branches",
        default_severity=Severity.WARNING,
        applies_to=_FUNCTIONS,
        check=check_too_many_branches,
        message="function '{name}' has {count} branches (limit {limit})",
        description="Functions must not branch too much.",
        thresholds={"max_branches": 12},
        enabled_by_default=False,
    ),
    RuleDefinition(
        id="doc.missing-module-docstring",
        default_severity=Severity.INFO,
        applies_to=_MODULES,
        check=check_missing_module_docstring,
        message="module '{name}' is missing a docstring",
        description="Modules must be documented.",
        enabled_by_default=False,
    ),
    RuleDefinition(
        id="naming.function-case",
        default_severity=Severity.INFO,
        applies_to=_FUNCTIONS,
        check=check_function_case,
        message="function name '{name}' is not snake_case",
        description="Function names use snake_case.",
        enabled_by_default=False,
    ),
    RuleDefinition(
        id="naming.class-case",
        default_severity=Severity.INFO,
        applies_to=_CLASSES,
        check=check_class_case,
        message="class name '{name}' is not CapWords",
        description="Class names use CapWords.",
        enabled_by_default=False,
    ),
    RuleDefinition(
        id="file.too-long",
        default_severity=Severity.WARNING,
        applies_to=FILE_LEVEL,
        check=check_file_too_long,
        message="file has {count} lines (limit {limit})",
        description="Files must stay reasonably short.",
        thresholds={"max_file_length": 1000},
        enabled_by_default=False,
    ),
)


def build_default_registry() -> RuleRegistry:
    """Return a fresh, unfrozen registry holding the built-in rules."""
    return RuleRegistry(BUILTIN_RULES)
