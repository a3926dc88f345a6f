"""Derived per-symbol facts computed once, before any rule runs."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable

from lintcrumb.models import (
    DECISION_KINDS,
    NESTING_KINDS,
    ControlBlock,
    SourceUnit,
    Symbol,
)


def annotate(unit: SourceUnit) -> SourceUnit:
    """Return a copy of ``unit`` with every symbol's metric fields populated.

    Pure function of its input. ``parse_error`` is carried over unchanged.

    Args:
        unit: The SourceUnit produced by a front end.

    Returns:
        A new SourceUnit whose symbols carry ``max_nesting_depth``,
        ``body_line_count`` and ``branch_count``.
    """
    non_code = unit.comment_lines | unit.blank_lines
    symbols = tuple(_annotate_symbol(sym, non_code) for sym in unit.symbols)
    return dataclasses.replace(unit, symbols=symbols)


def _annotate_symbol(symbol: Symbol, non_code: frozenset[int]) -> Symbol:
    return dataclasses.replace(
        symbol,
        max_nesting_depth=nesting_depth(symbol.blocks),
        body_line_count=body_line_count(symbol, non_code),
        branch_count=branch_count(symbol.blocks),
    )


def nesting_depth(blocks: Iterable[ControlBlock]) -> int:
    """Maximum containment depth over nesting blocks.

    A body with a single ``if`` has depth 1; a body with no blocks has 0.
    """
    nesting = sorted(
        (b for b in blocks if b.kind in NESTING_KINDS),
        key=lambda b: (b.start, (-b.end_line, -b.end_column)),
    )
    open_blocks: list[ControlBlock] = []
    deepest = 0
    for block in nesting:
        while open_blocks and not open_blocks[-1].contains(block):
            open_blocks.pop()
        open_blocks.append(block)
        deepest = max(deepest, len(open_blocks))
    return deepest


def body_line_count(symbol: Symbol, non_code: frozenset[int]) -> int:
    """Lines spanned by the symbol, minus blank and comment-only lines."""
    span = range(symbol.start_line, symbol.end_line + 1)
    return sum(1 for line in span if line not in non_code)


def branch_count(blocks: Iterable[ControlBlock]) -> int:
    """Cyclomatic-style count: one plus the number of decision points."""
    return 1 + sum(1 for b in blocks if b.kind in DECISION_KINDS)
