"""Tests for the tree-sitter Python front end."""

from __future__ import annotations

from pathlib import Path

from lintcrumb.languages import LANGUAGES
from lintcrumb.metrics import annotate
from lintcrumb.models import SourceUnit, Symbol, SymbolKind

PYTHON = LANGUAGES["python"]


def _parse(code: str, path: str = "mod.py") -> SourceUnit:
    return PYTHON.parse(path, code)


def _named(unit: SourceUnit, name: str) -> Symbol:
    return next(sym for sym in unit.symbols if sym.name == name)


class TestSymbolExtraction:
    """Integration tests for symbol extraction using real tree-sitter parsing."""

    def test_module_symbol_first(self) -> None:
        unit = _parse("x = 1\n", path="pkg/tools.py")
        assert unit.symbols[0].kind == SymbolKind.MODULE
        assert unit.symbols[0].name == "tools"
        assert unit.symbols[0].parent is None
        assert unit.language == "python"

    def test_extracts_class_and_function(self) -> None:
        unit = _parse("class Foo:\n    pass\n\n\ndef bar():\n    pass\n")
        kinds = [(s.kind, s.name) for s in unit.symbols[1:]]
        assert kinds == [(SymbolKind.CLASS, "Foo"), (SymbolKind.FUNCTION, "bar")]

    def test_document_order_and_parents(self, sample_python_file: Path) -> None:
        unit = _parse(sample_python_file.read_text(encoding="utf-8"), "sample.py")
        assert [s.name for s in unit.symbols] == ["sample", "Greeter", "greet", "main"]
        greet = _named(unit, "greet")
        assert unit.parent_of(greet) is _named(unit, "Greeter")
        assert unit.qualified_name(greet) == "Greeter.greet"

    def test_line_numbers_are_one_indexed_and_inclusive(self) -> None:
        unit = _parse("# comment\ndef foo():\n    x = 1\n    return x\n")
        foo = _named(unit, "foo")
        assert foo.start_line == 2
        assert foo.end_line == 4

    def test_nested_function(self) -> None:
        unit = _parse(
            "def outer():\n    def inner():\n        pass\n    return inner\n"
        )
        inner = _named(unit, "inner")
        assert unit.qualified_name(inner) == "outer.inner"

    def test_decorated_method_belongs_to_class(self) -> None:
        code = (
            "class A:\n"
            "    @property\n"
            "    def value(self) -> int:\n"
            '        """Value."""\n'
            "        return 1\n"
        )
        unit = _parse(code)
        value = _named(unit, "value")
        assert unit.parent_of(value) is _named(unit, "A")
        assert value.start_line == 3
        assert value.has_docstring
        assert value.parameter_count == 0

    def test_empty_file(self) -> None:
        unit = _parse("")
        assert len(unit.symbols) == 1
        assert unit.line_count == 0
        assert unit.parse_error is None


class TestDocstrings:
    """Tests for docstring detection."""

    def test_function_docstring(self) -> None:
        unit = _parse('def f():\n    """Doc."""\n    return 1\n')
        assert _named(unit, "f").has_docstring

    def test_missing_docstring(self) -> None:
        unit = _parse("def f():\n    return 1\n")
        assert not _named(unit, "f").has_docstring

    def test_string_after_statement_is_not_docstring(self) -> None:
        unit = _parse('def f():\n    x = 1\n    "not a docstring"\n')
        assert not _named(unit, "f").has_docstring

    def test_module_docstring(self) -> None:
        unit = _parse('"""Module doc."""\n\nx = 1\n')
        assert unit.symbols[0].has_docstring

    def test_module_docstring_after_comment(self) -> None:
        unit = _parse('#!/usr/bin/env python\n"""Module doc."""\n')
        assert unit.symbols[0].has_docstring


class TestSignatures:
    """Tests for parameter counting, annotations and defaults."""

    def test_fully_annotated(self) -> None:
        unit = _parse(
            "def process(items: list[str], verbose: bool = False) -> int:\n"
            "    return 0\n"
        )
        sym = _named(unit, "process")
        assert sym.parameter_count == 2
        assert sym.has_type_annotations
        assert sym.default_argument_kinds == frozenset({"literal"})

    def test_missing_parameter_annotation(self) -> None:
        unit = _parse("def simple(x) -> None:\n    pass\n")
        sym = _named(unit, "simple")
        assert sym.parameter_count == 1
        assert not sym.has_type_annotations

    def test_missing_return_annotation(self) -> None:
        unit = _parse("def simple(x: int):\n    pass\n")
        assert not _named(unit, "simple").has_type_annotations

    def test_init_needs_no_return_annotation(self) -> None:
        unit = _parse("class A:\n    def __init__(self, x: int):\n        pass\n")
        sym = _named(unit, "__init__")
        assert sym.parameter_count == 1
        assert sym.has_type_annotations

    def test_method_receiver_not_counted(self) -> None:
        unit = _parse("class A:\n    def run(self, cfg: str) -> None:\n        pass\n")
        assert _named(unit, "run").parameter_count == 1

    def test_self_counted_outside_class(self) -> None:
        unit = _parse("def run(self) -> None:\n    pass\n")
        assert _named(unit, "run").parameter_count == 1

    def test_splats_counted_separators_not(self) -> None:
        unit = _parse(
            "def f(a, *args, b, **kwargs):\n    pass\n\n"
            "def g(a, /, b, *, c):\n    pass\n"
        )
        assert _named(unit, "f").parameter_count == 4
        assert _named(unit, "g").parameter_count == 3

    def test_mutable_default_tagged(self) -> None:
        unit = _parse("def f(a=[], b={}, c=set()):\n    pass\n")
        assert _named(unit, "f").default_argument_kinds == frozenset(
            {"mutable-literal", "call"}
        )

    def test_typed_mutable_default_tagged(self) -> None:
        unit = _parse("def f(a: list = []) -> None:\n    pass\n")
        assert "mutable-literal" in _named(unit, "f").default_argument_kinds


class TestControlBlocks:
    """Tests for control-flow block extraction."""

    def test_blocks_belong_to_innermost_symbol(self) -> None:
        code = (
            "def outer():\n"
            "    if a:\n"
            "        pass\n"
            "    def inner():\n"
            "        for x in y:\n"
            "            pass\n"
        )
        unit = _parse(code)
        assert [b.kind for b in _named(unit, "outer").blocks] == ["if"]
        assert [b.kind for b in _named(unit, "inner").blocks] == ["loop"]

    def test_elif_and_handlers(self) -> None:
        code = (
            "def f():\n"
            "    if a:\n"
            "        pass\n"
            "    elif b:\n"
            "        pass\n"
            "    try:\n"
            "        pass\n"
            "    except ValueError:\n"
            "        pass\n"
        )
        kinds = [b.kind for b in _named(_parse(code), "f").blocks]
        assert kinds == ["if", "elif", "try", "handler"]

    def test_bare_except_is_catch_all(self) -> None:
        code = (
            "def risky():\n"
            "    try:\n"
            "        work()\n"
            "    except ValueError:\n"
            "        pass\n"
            "    except:\n"
            "        pass\n"
        )
        blocks = _named(_parse(code), "risky").blocks
        handlers = [b for b in blocks if b.kind == "handler"]
        assert [(h.start_line, h.catch_all) for h in handlers] == [
            (4, False),
            (6, True),
        ]

    def test_module_level_blocks(self) -> None:
        unit = _parse("while True:\n    break\n")
        assert [b.kind for b in unit.symbols[0].blocks] == ["loop"]


class TestLineFacts:
    """Tests for comment and blank line detection."""

    def test_comment_only_and_blank_lines(self) -> None:
        code = "def f():\n    # comment\n    x = 1  # trailing\n\n    return x\n"
        unit = _parse(code)
        assert unit.comment_lines == frozenset({2})
        assert unit.blank_lines == frozenset({4})
        assert unit.line_count == 5

    def test_form_feed_does_not_shift_lines(self) -> None:
        code = (
            "x = 1\n"
            "\x0c\n"
            "def f(a: int) -> int:\n"
            '    """Doc."""\n'
            "    y = a\n"
            "    return y\n"
        )
        unit = annotate(_parse(code))
        assert unit.line_count == 6
        assert unit.blank_lines == frozenset({2})
        f = _named(unit, "f")
        assert (f.start_line, f.end_line) == (3, 6)
        assert f.body_line_count == 4

    def test_no_trailing_newline(self) -> None:
        unit = _parse("x = 1\n\ny = 2")
        assert unit.line_count == 3
        assert unit.blank_lines == frozenset({2})


class TestParseErrors:
    """Malformed input degrades instead of raising."""

    def test_syntax_error_sets_parse_error(self) -> None:
        unit = _parse("def broken(:\n    pass\n")
        assert unit.parse_error is not None
        assert unit.parse_error.startswith("syntax error at line")
        assert unit.symbols[0].kind == SymbolKind.MODULE

    def test_partial_symbols_recovered(self) -> None:
        code = 'def good() -> None:\n    """Fine."""\n\n\nclass Broken(:\n    pass\n'
        unit = _parse(code)
        assert unit.parse_error is not None
        assert any(s.name == "good" for s in unit.symbols)

    def test_clean_file_has_no_parse_error(self, sample_python_file: Path) -> None:
        unit = _parse(sample_python_file.read_text(encoding="utf-8"))
        assert unit.parse_error is None

    def test_parse_is_idempotent(self, sample_python_file: Path) -> None:
        code = sample_python_file.read_text(encoding="utf-8")
        assert _parse(code) == _parse(code)
