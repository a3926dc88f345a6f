"""Text and JSON renderings of a Report. Pure functions; reports are never mutated."""

from __future__ import annotations

from typing import Any

import orjson

from lintcrumb.models import Report, Severity


def render_text(report: Report) -> str:
    """One ``path:line: [severity] rule_id: message`` line per violation."""
    return "".join(
        f"{v.path}:{v.line}: [{v.severity.value}] {v.rule_id}: {v.message}\n"
        for v in report.violations
    )


def render_summary(report: Report) -> str:
    """A single line of counts, e.g. ``3 files checked: 1 error, ...``."""
    counts = ", ".join(
        f"{report.counts.get(severity, 0)} {severity.value}"
        for severity in sorted(Severity, reverse=True)
    )
    line = f"{len(report.files)} file(s) checked: {counts}"
    if report.file_errors:
        line += f"; {len(report.file_errors)} degraded file(s)"
    if report.incomplete:
        line += " (incomplete)"
    return line


def report_to_dict(report: Report) -> dict[str, Any]:
    """Field-for-field plain-data form of a Report."""
    return {
        "violations": [
            {
                "path": v.path,
                "line": v.line,
                "rule_id": v.rule_id,
                "severity": v.severity.value,
                "message": v.message,
            }
            for v in report.violations
        ],
        "file_errors": [
            {"path": e.path, "kind": e.kind.value, "message": e.message}
            for e in report.file_errors
        ],
        "files": list(report.files),
        "summary": {
            severity.value: report.counts.get(severity, 0) for severity in Severity
        },
        "incomplete": report.incomplete,
    }


def render_json(report: Report) -> str:
    """Stable JSON: sorted keys, two-space indent, no trailing newline."""
    opts = orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2
    return orjson.dumps(report_to_dict(report), option=opts).decode("utf-8")
