"""Shared test fixtures for lintcrumb."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from lintcrumb.config import RunConfig
from lintcrumb.models import SourceUnit, Symbol, SymbolKind
from lintcrumb.registry import RuleSet
from lintcrumb.rules import build_default_registry


@pytest.fixture()
def sample_python_file(tmp_path: Path) -> Path:
    """Create a simple Python file with known symbols."""
    code = tmp_path / "sample.py"
    code.write_text(
        '''\
class Greeter:
    """A simple greeter."""

    def greet(self, name: str) -> str:
        return f"Hello, {name}!"


def main() -> None:
    g = Greeter()
    g.greet("world")
''',
        encoding="utf-8",
    )
    return code


@pytest.fixture()
def sample_repo(tmp_path: Path) -> Path:
    """Create a small multi-file Python repo with a known set of findings."""
    (tmp_path / "models.py").write_text(
        '''\
"""Models."""


class User:
    """A user model."""

    def __init__(self, name: str, tags: list = []) -> None:
        """Store the name."""
        self.name = name
        self.tags = tags
''',
        encoding="utf-8",
    )
    (tmp_path / "utils.py").write_text(
        """\
def format_name(name):
    try:
        return name.strip().title()
    except:
        return name
""",
        encoding="utf-8",
    )
    (tmp_path / "main.py").write_text(
        '''\
from models import User
from utils import format_name


def run() -> None:
    """Entry point."""
    user = User(format_name("alice"))
    print(user.name)
''',
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture()
def default_ruleset() -> RuleSet:
    """The built-in rule set under the default configuration."""
    return build_default_registry().compile(RunConfig())


@pytest.fixture()
def make_function() -> Callable[..., Symbol]:
    """Factory for function symbols with clean defaults (nothing fires)."""

    def _make(**overrides: object) -> Symbol:
        fields: dict[str, object] = {
            "kind": SymbolKind.FUNCTION,
            "name": "work",
            "start_line": 3,
            "end_line": 12,
            "has_docstring": True,
            "parameter_count": 0,
            "has_type_annotations": True,
            "parent": 0,
            "max_nesting_depth": 1,
            "body_line_count": 10,
        }
        fields.update(overrides)
        return Symbol(**fields)  # type: ignore[arg-type]

    return _make


@pytest.fixture()
def make_unit() -> Callable[..., SourceUnit]:
    """Factory wrapping symbols in a unit with a module symbol at index 0."""

    def _make(
        *symbols: Symbol, path: str = "pkg/mod.py", **fields: object
    ) -> SourceUnit:
        line_count = max([s.end_line for s in symbols] + [1])
        module = Symbol(
            kind=SymbolKind.MODULE,
            name="mod",
            start_line=1,
            end_line=line_count,
            has_docstring=True,
        )
        return SourceUnit(
            path=path,
            language="python",
            symbols=(module, *symbols),
            line_count=line_count,
            **fields,  # type: ignore[arg-type]
        )

    return _make

