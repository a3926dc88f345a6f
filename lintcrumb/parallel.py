"""Concurrent per-file analysis: read, parse, annotate, evaluate."""

from __future__ import annotations

import logging
import os
import signal
import threading
from concurrent.futures import (
    FIRST_COMPLETED,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from lintcrumb.engine import evaluate
from lintcrumb.errors import IOUnavailable
from lintcrumb.languages import LANGUAGES
from lintcrumb.metrics import annotate
from lintcrumb.models import FailureKind, FileError, FileResult, SourceUnit
from lintcrumb.registry import RuleSet

log = logging.getLogger(__name__)

Backend = Literal["thread", "process"]

_DEFAULT_MAX_FILE_SIZE = 1_000_000  # 1 MB
_POLL_INTERVAL = 0.05


@dataclass(frozen=True)
class FileTask:
    """One file to analyze: from disk (``source``) or in memory (``content``)."""

    path: str
    language: str
    source: Path | None = None
    content: str | None = None


@dataclass(frozen=True)
class ScheduleOutcome:
    """Per-file results in completion order, plus whether the run was cut short."""

    results: tuple[FileResult, ...]
    cancelled: bool


class CancellationToken:
    """Cooperative cancellation flag, checked between files, never mid-file."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def read_source(task: FileTask, max_size_bytes: int = _DEFAULT_MAX_FILE_SIZE) -> str:
    """Return the task's content, reading it from disk if needed.

    Raises:
        IOUnavailable: If the file is missing, unreadable, not UTF-8, or
            larger than ``max_size_bytes``.
    """
    if task.content is not None:
        return task.content
    if task.source is None:
        raise IOUnavailable(task.path, ValueError("no source or content given"))
    try:
        size = task.source.stat().st_size
        if size > max_size_bytes:
            raise IOUnavailable(
                task.path, ValueError(f"skipped (>{max_size_bytes} bytes)")
            )
        return task.source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise IOUnavailable(task.path, exc) from exc


def analyze_task(
    task: FileTask,
    ruleset: RuleSet,
    max_size_bytes: int = _DEFAULT_MAX_FILE_SIZE,
) -> FileResult:
    """Process one file start to finish.

    An unreadable file becomes an empty, degraded unit so it still shows up
    in the report; the rule engine runs over it like any other unit.
    """
    try:
        content = read_source(task, max_size_bytes)
    except IOUnavailable as exc:
        unit = SourceUnit(path=task.path, language=task.language, parse_error=str(exc))
        failure = FailureKind.IO_UNAVAILABLE
    else:
        unit = _parse(task, content)
        failure = FailureKind.PARSE_DEGRADED

    unit = annotate(unit)
    violations = evaluate(unit, ruleset)

    error = None
    if unit.parse_error is not None:
        error = FileError(path=task.path, kind=failure, message=unit.parse_error)
        log.warning("%s: %s", task.path, unit.parse_error)
    log.debug("%s: %d violation(s)", task.path, len(violations))
    return FileResult(
        path=task.path,
        language=unit.language,
        violations=tuple(violations),
        error=error,
    )


def _parse(task: FileTask, content: str) -> SourceUnit:
    front_end = LANGUAGES.get(task.language)
    if front_end is None:
        return SourceUnit(
            path=task.path,
            language=task.language,
            parse_error=f"no front end for language '{task.language}'",
        )
    return front_end.parse(task.path, content)


def _failed_result(task: FileTask, message: str) -> FileResult:
    """A degraded result for a file whose worker raised instead of returning."""
    return FileResult(
        path=task.path,
        language=task.language,
        error=FileError(
            path=task.path, kind=FailureKind.PARSE_DEGRADED, message=message
        ),
    )


def _thread_task(
    task: FileTask,
    ruleset: RuleSet,
    cancel: CancellationToken,
    max_size_bytes: int,
) -> FileResult | None:
    if cancel.cancelled:
        return None
    return analyze_task(task, ruleset, max_size_bytes)


_worker_ruleset: RuleSet | None = None
_worker_max_size: int = _DEFAULT_MAX_FILE_SIZE


def _init_process_worker(ruleset: RuleSet, max_size_bytes: int) -> None:
    """Install the shared rule set once per worker process."""
    global _worker_ruleset, _worker_max_size
    # Ctrl-C reaches the whole process group; the parent cancels cooperatively.
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    _worker_ruleset = ruleset
    _worker_max_size = max_size_bytes


def _process_task(task: FileTask) -> FileResult:
    """Module-level function required for ProcessPoolExecutor pickling."""
    if _worker_ruleset is None:
        msg = "worker process was started without a rule set"
        raise RuntimeError(msg)
    return analyze_task(task, _worker_ruleset, _worker_max_size)


def analyze_files(
    tasks: list[FileTask],
    ruleset: RuleSet,
    *,
    max_workers: int | None = None,
    backend: Backend = "thread",
    cancel: CancellationToken | None = None,
    max_size_bytes: int | None = None,
) -> ScheduleOutcome:
    """Fan tasks out to a fixed-size worker pool and collect the results.

    Each file is handled start to finish by one worker. Results arrive in
    completion order; the reporter imposes the final order. When ``cancel``
    is set (or a worker runs out of memory), queued files are dropped,
    in-flight files finish, and the outcome is flagged as cancelled. A
    worker that raises yields a degraded result for its file only.

    Args:
        tasks: Files to analyze.
        ruleset: The compiled rule set, shared read-only by all workers.
        max_workers: Pool size (default: CPU count, at most one per task).
        backend: ``"thread"`` or ``"process"``. Process workers need
            picklable rule checks.
        cancel: Optional token to stop the run cooperatively.
        max_size_bytes: Files larger than this are reported unreadable
            (default 1MB).

    Returns:
        The ScheduleOutcome of the run.
    """
    if backend not in ("thread", "process"):
        msg = f"unknown backend {backend!r}"
        raise ValueError(msg)
    if cancel is None:
        cancel = CancellationToken()
    if max_size_bytes is None:
        max_size_bytes = _DEFAULT_MAX_FILE_SIZE
    if not tasks:
        return ScheduleOutcome(results=(), cancelled=cancel.cancelled)
    if max_workers is None:
        max_workers = min(os.cpu_count() or 1, len(tasks))
    if max_workers < 1:
        msg = f"max_workers must be at least 1, got {max_workers}"
        raise ValueError(msg)

    results: list[FileResult] = []
    aborted = False
    with _make_executor(backend, max_workers, ruleset, max_size_bytes) as executor:
        futures: dict[Future[FileResult | None], FileTask] = {}
        for task in tasks:
            if backend == "process":
                future = executor.submit(_process_task, task)
            else:
                future = executor.submit(
                    _thread_task, task, ruleset, cancel, max_size_bytes
                )
            futures[future] = task

        pending = set(futures)
        while pending:
            if cancel.cancelled:
                for future in pending:
                    future.cancel()
            done, pending = wait(
                pending, timeout=_POLL_INTERVAL, return_when=FIRST_COMPLETED
            )
            for future in done:
                if future.cancelled():
                    continue
                task = futures[future]
                try:
                    result = future.result()
                except MemoryError:
                    log.error("%s: out of memory, cancelling run", task.path)
                    results.append(_failed_result(task, "out of memory"))
                    aborted = True
                    cancel.cancel()
                    continue
                except Exception as exc:
                    log.warning("%s: analysis failed: %r", task.path, exc)
                    results.append(
                        _failed_result(
                            task, f"front end failed: {type(exc).__name__}: {exc}"
                        )
                    )
                    continue
                if result is not None:
                    results.append(result)

    cancelled = aborted or (cancel.cancelled and len(results) < len(tasks))
    if cancelled:
        log.warning("run cancelled after %d of %d file(s)", len(results), len(tasks))
    return ScheduleOutcome(results=tuple(results), cancelled=cancelled)


def _make_executor(
    backend: Backend, max_workers: int, ruleset: RuleSet, max_size_bytes: int
) -> Executor:
    if backend == "process":
        return ProcessPoolExecutor(
            max_workers=max_workers,
            initializer=_init_process_worker,
            initargs=(ruleset, max_size_bytes),
        )
    return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="lintcrumb")
