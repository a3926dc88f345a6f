"""TOON (Token-Oriented Object Notation) encoding of a Report."""

from __future__ import annotations

import re

from lintcrumb.models import Report, Severity

_NEEDS_QUOTING = re.compile(r'[,:"\\{}\[\]]')
_LOOKS_NUMERIC = re.compile(r"^-?(?:0|[1-9]\d*)(?:\.\d+)?$")
_KEYWORDS = frozenset({"true", "false", "null"})


def encode(report: Report) -> str:
    """Encode a Report into TOON format.

    Args:
        report: The report to encode.

    Returns:
        TOON-formatted string (no trailing newline).
    """
    parts: list[str] = [f"incomplete: {'true' if report.incomplete else 'false'}"]

    summary_rows = [
        [severity.value, str(report.counts.get(severity, 0))]
        for severity in sorted(Severity, reverse=True)
    ]
    parts.append(_format_tabular("summary", ["severity", "count"], summary_rows))

    parts.append(_format_tabular("files", ["path"], [[p] for p in report.files]))

    violation_rows = [
        [v.path, str(v.line), v.severity.value, v.rule_id, v.message]
        for v in report.violations
    ]
    parts.append(
        _format_tabular(
            "violations",
            ["path", "line", "severity", "rule_id", "message"],
            violation_rows,
        )
    )

    error_rows = [[e.path, e.kind.value, e.message] for e in report.file_errors]
    parts.append(
        _format_tabular("file_errors", ["path", "kind", "message"], error_rows)
    )

    return "\n".join(parts)


def _format_tabular(
    name: str,
    columns: list[str],
    rows: list[list[str]],
) -> str:
    """Format a tabular array: a ``name[N]{cols}:`` header, then one row per line."""
    header = f"{name}[{len(rows)}]{{{','.join(columns)}}}:"
    lines = [header]
    for row in rows:
        lines.append(f"  {','.join(_encode_value(cell) for cell in row)}")
    return "\n".join(lines)


def _encode_value(value: str) -> str:
    """Encode a single value, quoting if necessary per TOON rules."""
    if not value:
        return '""'
    if (
        value != value.strip()
        or any(c in value for c in "\n\r\t")
        or value.lower() in _KEYWORDS
    ):
        return _quote(value)
    if _LOOKS_NUMERIC.match(value):
        return value
    if _NEEDS_QUOTING.search(value) or value.startswith("-"):
        return _quote(value)
    return value


def _quote(value: str) -> str:
    """Double-quote a string with TOON escape rules."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    return f'"{escaped}"'
