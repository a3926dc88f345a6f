"""Tree-sitter front end: Python source to a normalized SourceUnit."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from lintcrumb.models import ControlBlock, SourceUnit, Symbol, SymbolKind

if TYPE_CHECKING:
    from tree_sitter import Node

    from lintcrumb.languages import TreeSitterLanguage

_DEFINITION_KINDS: dict[str, SymbolKind] = {
    "function_definition": SymbolKind.FUNCTION,
    "class_definition": SymbolKind.CLASS,
}

_BLOCK_MAP: dict[str, str] = {
    "if_statement": "if",
    "elif_clause": "elif",
    "for_statement": "loop",
    "while_statement": "loop",
    "try_statement": "try",
    "except_clause": "handler",
    "except_group_clause": "handler",
    "with_statement": "with",
    "match_statement": "match",
    "case_clause": "case",
}

_MUTABLE_DEFAULTS = frozenset(
    {
        "list",
        "dictionary",
        "set",
        "list_comprehension",
        "dictionary_comprehension",
        "set_comprehension",
    }
)

_STRING_TYPES = frozenset({"string", "concatenated_string"})
_SEPARATORS = frozenset({"keyword_separator", "positional_separator"})
_RECEIVER_NAMES = frozenset({"self", "cls"})


@dataclass
class _Draft:
    """Mutable symbol under construction; frozen into a Symbol at the end."""

    kind: SymbolKind
    name: str
    start_line: int
    end_line: int
    parent: int | None
    has_docstring: bool = False
    parameter_count: int = 0
    has_type_annotations: bool = True
    default_argument_kinds: set[str] = field(default_factory=set)
    blocks: list[ControlBlock] = field(default_factory=list)

    def freeze(self) -> Symbol:
        return Symbol(
            kind=self.kind,
            name=self.name,
            start_line=self.start_line,
            end_line=self.end_line,
            has_docstring=self.has_docstring,
            parameter_count=self.parameter_count,
            has_type_annotations=self.has_type_annotations,
            default_argument_kinds=frozenset(self.default_argument_kinds),
            blocks=tuple(self.blocks),
            parent=self.parent,
        )


def extract_unit(path: str, content: str, language: TreeSitterLanguage) -> SourceUnit:
    """Parse Python source and build its SourceUnit.

    Never raises on malformed input: tree-sitter recovers from syntax
    errors, so the unit carries ``parse_error`` and every symbol that
    survived recovery.

    Args:
        path: Identifier of the file in the report.
        content: The decoded file content.
        language: The tree-sitter language configuration.

    Returns:
        The SourceUnit with symbols in document order. Metric fields are
        left at their defaults for :func:`lintcrumb.metrics.annotate`.
    """
    source = content.encode("utf-8")
    # Rows as tree-sitter counts them: only "\n" ends a line.
    text_lines = content.split("\n")
    if text_lines[-1] == "":
        text_lines.pop()
    line_count = len(text_lines)
    blank_lines = frozenset(
        i for i, line in enumerate(text_lines, start=1) if not line.strip()
    )

    parser = language.get_parser()
    tree = parser.parse(source)
    root = tree.root_node

    module = _Draft(
        kind=SymbolKind.MODULE,
        name=PurePosixPath(path).stem or path,
        start_line=1,
        end_line=max(line_count, 1),
        parent=None,
        has_docstring=_has_docstring(root),
    )
    drafts: list[_Draft] = [module]
    comment_lines: set[int] = set()
    byte_lines = source.split(b"\n")

    stack: list[tuple[Node, int]] = [(child, 0) for child in reversed(root.children)]
    while stack:
        node, owner = stack.pop()
        node_type = node.type

        if node_type == "comment":
            row, col = node.start_point[0], node.start_point[1]
            if row < len(byte_lines) and not byte_lines[row][:col].strip():
                comment_lines.add(row + 1)
            continue

        symbol_kind = _DEFINITION_KINDS.get(node_type)
        if symbol_kind is not None:
            index = len(drafts)
            drafts.append(_draft_definition(node, symbol_kind, owner, drafts))
            body = node.child_by_field_name("body")
            if body is not None:
                stack.extend((child, index) for child in reversed(body.children))
            continue

        block_kind = _BLOCK_MAP.get(node_type)
        if block_kind is not None:
            drafts[owner].blocks.append(_control_block(node, block_kind))

        stack.extend((child, owner) for child in reversed(node.children))

    return SourceUnit(
        path=path,
        language=language.name,
        symbols=tuple(draft.freeze() for draft in drafts),
        line_count=line_count,
        parse_error=_first_syntax_error(root) if root.has_error else None,
        comment_lines=frozenset(comment_lines),
        blank_lines=blank_lines,
    )


def _draft_definition(
    node: Node, kind: SymbolKind, owner: int, drafts: list[_Draft]
) -> _Draft:
    """Build a draft for a function_definition or class_definition node."""
    name_node = node.child_by_field_name("name")
    name = _text(name_node) if name_node is not None else "<unknown>"
    start_line = node.start_point[0] + 1
    end_line = max(node.end_point[0] + 1, start_line)

    draft = _Draft(
        kind=kind,
        name=name,
        start_line=start_line,
        end_line=end_line,
        parent=owner,
        has_docstring=_has_docstring(node.child_by_field_name("body")),
    )
    if kind == SymbolKind.FUNCTION:
        is_method = drafts[owner].kind == SymbolKind.CLASS
        _fill_signature(draft, node, is_method=is_method)
    return draft


def _fill_signature(draft: _Draft, node: Node, *, is_method: bool) -> None:
    """Count parameters, check annotations and tag default values."""
    params = node.child_by_field_name("parameters")
    annotated = True
    count = 0
    first = True

    for param in params.named_children if params is not None else ():
        if param.type == "comment" or param.type in _SEPARATORS:
            continue
        name = _parameter_name(param)
        if first and is_method and name in _RECEIVER_NAMES:
            first = False
            continue
        first = False
        count += 1
        if param.type not in ("typed_parameter", "typed_default_parameter"):
            annotated = False
        value = param.child_by_field_name("value")
        if value is not None:
            draft.default_argument_kinds.add(_default_kind(value))

    if draft.name != "__init__" and node.child_by_field_name("return_type") is None:
        annotated = False

    draft.parameter_count = count
    draft.has_type_annotations = annotated


def _parameter_name(param: Node) -> str:
    if param.type == "identifier":
        return _text(param)
    name_node = param.child_by_field_name("name")
    if name_node is not None:
        return _text(name_node)
    # typed_parameter keeps its name as the first named child
    for child in param.named_children:
        if child.type == "identifier":
            return _text(child)
    return ""


def _default_kind(value: Node) -> str:
    if value.type in _MUTABLE_DEFAULTS:
        return "mutable-literal"
    if value.type == "call":
        return "call"
    return "literal"


def _has_docstring(body: Node | None) -> bool:
    """Check whether the first statement of a body is a bare string."""
    if body is None:
        return False
    for child in body.named_children:
        if child.type == "comment":
            continue
        if child.type != "expression_statement" or not child.named_children:
            return False
        return child.named_children[0].type in _STRING_TYPES
    return False


def _control_block(node: Node, kind: str) -> ControlBlock:
    catch_all = False
    if kind == "handler":
        catch_all = all(c.type in ("block", "comment") for c in node.named_children)
    return ControlBlock(
        kind=kind,
        start_line=node.start_point[0] + 1,
        start_column=node.start_point[1],
        end_line=node.end_point[0] + 1,
        end_column=node.end_point[1],
        catch_all=catch_all,
    )


def _first_syntax_error(root: Node) -> str:
    """Describe the first ERROR or MISSING node in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return f"syntax error at line {node.start_point[0] + 1}"
        if node.has_error:
            stack.extend(reversed(node.children))
    return f"syntax error at line {root.start_point[0] + 1}"


def _text(node: Node) -> str:
    return node.text.decode("utf-8") if node.text is not None else ""
