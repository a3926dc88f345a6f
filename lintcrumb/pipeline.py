"""Run entry points: configuration in, Report out."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePosixPath

from lintcrumb.config import RunConfig
from lintcrumb.discovery import discover_files
from lintcrumb.languages import language_for_extension
from lintcrumb.models import Report
from lintcrumb.parallel import Backend, CancellationToken, FileTask, analyze_files
from lintcrumb.registry import RuleRegistry, RuleSet
from lintcrumb.report import build_report
from lintcrumb.rules import build_default_registry

log = logging.getLogger(__name__)


def compile_rules(
    config: RunConfig | None = None, registry: RuleRegistry | None = None
) -> RuleSet:
    """Build the run's RuleSet; raises configuration errors before any I/O."""
    if registry is None:
        registry = build_default_registry()
    return registry.compile(config or RunConfig())


def build_tasks(sources: Mapping[str, str] | Iterable[str | Path]) -> list[FileTask]:
    """Turn paths, or an in-memory mapping of path to content, into tasks.

    The language comes from the file suffix. Repeated paths keep their
    first occurrence.
    """
    tasks: dict[str, FileTask] = {}
    if isinstance(sources, Mapping):
        for path, content in sources.items():
            key = PurePosixPath(path).as_posix()
            tasks.setdefault(
                key, FileTask(path=key, language=_language_tag(key), content=content)
            )
    else:
        for source in sources:
            source_path = Path(source)
            key = source_path.as_posix()
            tasks.setdefault(
                key,
                FileTask(path=key, language=_language_tag(key), source=source_path),
            )
    return list(tasks.values())


def analyze(
    sources: Mapping[str, str] | Iterable[str | Path],
    config: RunConfig | None = None,
    *,
    registry: RuleRegistry | None = None,
    max_workers: int | None = None,
    backend: Backend = "thread",
    cancel: CancellationToken | None = None,
    max_size_bytes: int | None = None,
) -> Report:
    """Analyze files and return the Report.

    The rule set is compiled first, so an unknown or duplicate rule id
    fails the run before any file is read.

    Args:
        sources: File paths, or a mapping of path to content.
        config: The resolved run configuration (defaults if omitted).
        registry: Rules to draw from (the built-in rules if omitted).
        max_workers: Worker pool size.
        backend: ``"thread"`` or ``"process"``.
        cancel: Optional cooperative cancellation token.
        max_size_bytes: Larger files are reported unreadable.

    Returns:
        The Report, marked incomplete if the run was cancelled.
    """
    ruleset = compile_rules(config, registry)
    tasks = build_tasks(sources)
    return _run(tasks, ruleset, max_workers, backend, cancel, max_size_bytes)


def analyze_root(
    root: Path,
    config: RunConfig | None = None,
    *,
    language: str | None = None,
    registry: RuleRegistry | None = None,
    max_workers: int | None = None,
    backend: Backend = "thread",
    cancel: CancellationToken | None = None,
    max_size_bytes: int | None = None,
) -> Report:
    """Discover files under ``root`` and analyze them.

    Reported paths are relative to ``root``.
    """
    config = config or RunConfig()
    ruleset = compile_rules(config, registry)
    files = discover_files(
        root, extra_ignores=config.extra_ignores, language_filter=language
    )
    tasks = [
        FileTask(path=rel.as_posix(), language=lang, source=root / rel)
        for rel, lang in files
    ]
    return _run(tasks, ruleset, max_workers, backend, cancel, max_size_bytes)


def _run(
    tasks: list[FileTask],
    ruleset: RuleSet,
    max_workers: int | None,
    backend: Backend,
    cancel: CancellationToken | None,
    max_size_bytes: int | None,
) -> Report:
    log.debug("analyzing %d file(s) with %d rule(s)", len(tasks), len(ruleset.rules))
    outcome = analyze_files(
        tasks,
        ruleset,
        max_workers=max_workers,
        backend=backend,
        cancel=cancel,
        max_size_bytes=max_size_bytes,
    )
    return build_report(outcome.results, incomplete=outcome.cancelled)


def _language_tag(path: str) -> str:
    suffix = PurePosixPath(path).suffix
    front_end = language_for_extension(suffix)
    if front_end is not None:
        return front_end.name
    return suffix.lstrip(".") or "unknown"
