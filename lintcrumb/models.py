"""Core data structures for lintcrumb."""

from __future__ import annotations

import enum
import functools
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@functools.total_ordering
class Severity(enum.Enum):
    """How serious a violation is. Ordered: info < warning < error."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
}


class SymbolKind(enum.Enum):
    """The syntactic kind of a symbol. Methods are functions with a class parent."""

    CLASS = "class"
    FUNCTION = "function"
    MODULE = "module"


class FailureKind(enum.Enum):
    """Why a file could not be analyzed cleanly."""

    PARSE_DEGRADED = "parse-degraded"
    IO_UNAVAILABLE = "io-unavailable"


# Control block vocabulary shared by all front ends.
NESTING_KINDS: frozenset[str] = frozenset({"if", "loop", "try", "with", "match"})
DECISION_KINDS: frozenset[str] = frozenset({"if", "elif", "loop", "handler", "case"})
BLOCK_KINDS: frozenset[str] = NESTING_KINDS | DECISION_KINDS


@dataclass(frozen=True)
class ControlBlock:
    """A control-flow construct inside a symbol's own body."""

    kind: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    catch_all: bool = False

    def __post_init__(self) -> None:
        if self.kind not in BLOCK_KINDS:
            msg = f"unknown control block kind {self.kind!r}"
            raise ValueError(msg)

    @property
    def start(self) -> tuple[int, int]:
        return (self.start_line, self.start_column)

    @property
    def end(self) -> tuple[int, int]:
        return (self.end_line, self.end_column)

    def contains(self, other: ControlBlock) -> bool:
        """Check whether ``other`` lies entirely within this block."""
        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True)
class Symbol:
    """A function, method, class or module declaration.

    ``parent`` is an index into the owning unit's ``symbols`` tuple rather
    than an object reference; the unit owns the tree. The metric fields
    (``max_nesting_depth``, ``body_line_count``, ``branch_count``) are
    filled in by :func:`lintcrumb.metrics.annotate`.
    """

    kind: SymbolKind
    name: str
    start_line: int
    end_line: int
    has_docstring: bool = False
    parameter_count: int = 0
    has_type_annotations: bool = True
    default_argument_kinds: frozenset[str] = frozenset()
    blocks: tuple[ControlBlock, ...] = ()
    parent: int | None = None
    max_nesting_depth: int = 0
    body_line_count: int = 0
    branch_count: int = 1

    def __post_init__(self) -> None:
        if self.end_line < self.start_line:
            msg = (
                f"symbol {self.name!r} ends at line {self.end_line} "
                f"before it starts at line {self.start_line}"
            )
            raise ValueError(msg)


@dataclass(frozen=True)
class SourceUnit:
    """One analyzed file: its symbol tree plus the facts metrics need."""

    path: str
    language: str
    symbols: tuple[Symbol, ...] = ()
    line_count: int = 0
    parse_error: str | None = None
    comment_lines: frozenset[int] = frozenset()
    blank_lines: frozenset[int] = frozenset()

    @property
    def degraded(self) -> bool:
        return self.parse_error is not None

    def parent_of(self, symbol: Symbol) -> Symbol | None:
        if symbol.parent is None:
            return None
        return self.symbols[symbol.parent]

    def children_of(self, index: int | None) -> list[int]:
        """Return indices of the direct children of ``index`` (None for roots)."""
        return [i for i, sym in enumerate(self.symbols) if sym.parent == index]

    def walk(self) -> Iterator[tuple[int, Symbol]]:
        """Yield ``(index, symbol)`` depth-first in document order."""
        children: dict[int | None, list[int]] = {}
        for i, sym in enumerate(self.symbols):
            children.setdefault(sym.parent, []).append(i)
        for siblings in children.values():
            siblings.sort(key=lambda i: (self.symbols[i].start_line, i))

        stack = list(reversed(children.get(None, [])))
        while stack:
            index = stack.pop()
            yield index, self.symbols[index]
            stack.extend(reversed(children.get(index, [])))

    def qualified_name(self, symbol: Symbol) -> str:
        """Dotted name through enclosing classes and functions.

        The module symbol is left out so ``Greeter.greet`` reads naturally.
        """
        parts = [symbol.name]
        parent = self.parent_of(symbol)
        while parent is not None and parent.kind != SymbolKind.MODULE:
            parts.append(parent.name)
            parent = self.parent_of(parent)
        return ".".join(reversed(parts))


@dataclass(frozen=True, order=True)
class Violation:
    """One instance of a rule firing.

    Equality, hashing and ordering use ``(path, line, rule_id)`` only.
    """

    path: str
    line: int
    rule_id: str
    severity: Severity = field(compare=False)
    message: str = field(compare=False)


@dataclass(frozen=True)
class FileError:
    """A per-file failure surfaced in the report instead of aborting the run."""

    path: str
    kind: FailureKind
    message: str


@dataclass(frozen=True)
class FileResult:
    """Everything one worker produced for one file."""

    path: str
    language: str
    violations: tuple[Violation, ...] = ()
    error: FileError | None = None


@dataclass(frozen=True)
class Report:
    """The terminal artifact of a run. Never mutated after assembly."""

    violations: tuple[Violation, ...] = ()
    file_errors: tuple[FileError, ...] = ()
    files: tuple[str, ...] = ()
    counts: Mapping[Severity, int] = field(
        default_factory=lambda: MappingProxyType({}), hash=False
    )
    incomplete: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "counts", MappingProxyType(dict(self.counts)))

    def has_failures(self, threshold: Severity = Severity.ERROR) -> bool:
        """Check whether any violation is at or above ``threshold``."""
        return any(v.severity >= threshold for v in self.violations)
