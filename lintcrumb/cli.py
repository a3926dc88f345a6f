"""CLI entry point for lintcrumb."""

from __future__ import annotations

import enum
import logging
import signal
from pathlib import Path
from typing import Annotated

import typer

from lintcrumb import toon
from lintcrumb.config import RunConfig, load_config, load_config_file
from lintcrumb.errors import ConfigError
from lintcrumb.languages import LANGUAGES
from lintcrumb.models import Report, Severity
from lintcrumb.parallel import CancellationToken
from lintcrumb.pipeline import analyze_root
from lintcrumb.render import render_json, render_summary, render_text
from lintcrumb.rules import build_default_registry


class OutputFormat(str, enum.Enum):
    TEXT = "text"
    JSON = "json"
    TOON = "toon"


def _render(report: Report, output_format: OutputFormat) -> str:
    if output_format is OutputFormat.JSON:
        return render_json(report) + "\n"
    if output_format is OutputFormat.TOON:
        return toon.encode(report) + "\n"
    return render_text(report)


def _list_rules() -> None:
    """Print every registered rule with its default state and severity."""
    for rule in build_default_registry():
        state = "on " if rule.enabled_by_default else "off"
        typer.echo(
            f"{rule.id:<34} {state} {rule.default_severity.value:<8} {rule.description}"
        )


def _resolve_config(root: Path, config_path: Path | None) -> RunConfig:
    if config_path is not None:
        return load_config_file(config_path)
    return load_config(root)


app = typer.Typer(
    name="lintcrumb",
    help="Check source files against a code-quality policy.",
    no_args_is_help=False,
)


@app.command()
def main(
    root: Annotated[
        Path,
        typer.Argument(
            help="Repository root directory.",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = Path("."),
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Report format."),
    ] = OutputFormat.TEXT,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            exists=True,
            dir_okay=False,
            help="Config file (default: lintcrumb.toml or [tool.lintcrumb]).",
        ),
    ] = None,
    enable: Annotated[
        list[str] | None,
        typer.Option("--enable", "-e", help="Enable a rule id (repeatable)."),
    ] = None,
    disable: Annotated[
        list[str] | None,
        typer.Option("--disable", "-d", help="Disable a rule id (repeatable)."),
    ] = None,
    fail_on: Annotated[
        Severity | None,
        typer.Option("--fail-on", help="Lowest severity that fails the run."),
    ] = None,
    language: Annotated[
        str | None,
        typer.Option(
            "--language",
            "-l",
            help="Restrict to a specific language (e.g., python).",
        ),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", "-j", min=1, help="Number of parallel workers."),
    ] = None,
    processes: Annotated[
        bool,
        typer.Option("--processes", help="Run workers as processes, not threads."),
    ] = False,
    list_rules: Annotated[
        bool,
        typer.Option("--list-rules", help="List available rules and exit."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log per-file progress to stderr."),
    ] = False,
) -> None:
    """Check files under ROOT and print the report to stdout."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if list_rules:
        _list_rules()
        return

    if language and language not in LANGUAGES:
        typer.echo(
            f"Error: unsupported language '{language}'. "
            f"Supported: {', '.join(LANGUAGES)}",
            err=True,
        )
        raise typer.Exit(2)

    cancel = CancellationToken()
    previous_handler = signal.signal(signal.SIGINT, lambda *_: cancel.cancel())
    try:
        config = _resolve_config(root, config_path)
        config = config.with_rules(enable=enable or (), disable=disable or ())
        report = analyze_root(
            root,
            config,
            language=language,
            max_workers=workers,
            backend="process" if processes else "thread",
            cancel=cancel,
        )
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(2) from exc
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    typer.echo(_render(report, output_format), nl=False)
    for error in report.file_errors:
        typer.echo(
            f"Warning: {error.path}: {error.kind.value}: {error.message}", err=True
        )
    typer.echo(render_summary(report), err=True)

    if report.incomplete:
        raise typer.Exit(130)
    threshold = fail_on or config.fail_on
    if report.has_failures(threshold):
        raise typer.Exit(1)
