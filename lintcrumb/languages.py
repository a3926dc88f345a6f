"""Language registry: front ends keyed by language tag."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from tree_sitter_language_pack import get_parser

if TYPE_CHECKING:
    from tree_sitter import Parser

    from lintcrumb.models import SourceUnit


EXTENSION_MAP: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
}


class FrontEnd(Protocol):
    """Turns raw file content into a SourceUnit.

    Implementations never raise on malformed input: they set
    ``parse_error`` and return whatever symbols they recovered.
    """

    name: str
    extensions: tuple[str, ...]

    def parse(self, path: str, content: str) -> SourceUnit: ...


_local = threading.local()


def _thread_parser(name: str) -> Parser:
    """Return this thread's tree-sitter Parser for the given language.

    A Parser must not be shared between threads, so each worker thread
    builds its own on first use and keeps it.
    """
    parsers: dict[str, Parser] = _local.__dict__.setdefault("parsers", {})
    parser = parsers.get(name)
    if parser is None:
        parser = parsers[name] = get_parser(name)
    return parser


@dataclass(frozen=True)
class TreeSitterLanguage:
    """A front end backed by a tree-sitter grammar."""

    name: str
    extensions: tuple[str, ...]

    def get_parser(self) -> Parser:
        """Get a configured tree-sitter Parser (cached per thread)."""
        return _thread_parser(self.name)

    def parse(self, path: str, content: str) -> SourceUnit:
        """Parse content into a SourceUnit for this language."""
        from lintcrumb.parsing import extract_unit

        return extract_unit(path, content, self)


LANGUAGES: dict[str, FrontEnd] = {
    "python": TreeSitterLanguage(name="python", extensions=(".py", ".pyi")),
}


def language_for_extension(ext: str) -> FrontEnd | None:
    """Look up a front end by file extension.

    Args:
        ext: File extension including the dot (e.g., ".py").

    Returns:
        The front end, or None if unsupported.
    """
    lang_name = EXTENSION_MAP.get(ext)
    if lang_name is None:
        return None
    return LANGUAGES.get(lang_name)
