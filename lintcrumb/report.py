"""Merging per-file results into the final, deterministic Report."""

from __future__ import annotations

from collections.abc import Iterable

from lintcrumb.models import FileResult, Report, Severity, Violation


def build_report(results: Iterable[FileResult], *, incomplete: bool = False) -> Report:
    """Deduplicate, sort and summarize per-file results.

    File results may arrive in any order. They are first ordered by path so
    that "keep the first duplicate" is itself deterministic, then the
    violations are sorted by ``(path, line, rule_id)``.

    Args:
        results: One FileResult per processed file.
        incomplete: Whether the run was cancelled before all files ran.

    Returns:
        The assembled Report.

    Raises:
        ValueError: If a violation's path is not the path of its file.
    """
    ordered = sorted(results, key=lambda r: r.path)

    seen: set[Violation] = set()
    violations: list[Violation] = []
    for result in ordered:
        for violation in result.violations:
            if violation.path != result.path:
                msg = (
                    f"violation path '{violation.path}' does not match "
                    f"processed file '{result.path}'"
                )
                raise ValueError(msg)
            if violation in seen:
                continue
            seen.add(violation)
            violations.append(violation)
    violations.sort()

    counts = {severity: 0 for severity in Severity}
    for violation in violations:
        counts[violation.severity] += 1

    return Report(
        violations=tuple(violations),
        file_errors=tuple(r.error for r in ordered if r.error is not None),
        files=tuple(dict.fromkeys(r.path for r in ordered)),
        counts=counts,
        incomplete=incomplete,
    )
