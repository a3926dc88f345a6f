"""Source file discovery under a repository root, gitignore aware."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Iterable, Iterator
from pathlib import Path

import pathspec

from lintcrumb.languages import language_for_extension

log = logging.getLogger(__name__)

# Hidden directories (.git, .venv, .tox, ...) are pruned separately.
SKIP_DIRS: frozenset[str] = frozenset(
    {"__pycache__", "node_modules", "venv", "env", "build", "dist", "egg-info"}
)

_GIT_TIMEOUT = 10


def discover_files(
    root: Path,
    *,
    extra_ignores: Iterable[str] = (),
    language_filter: str | None = None,
) -> list[tuple[Path, str]]:
    """Find the files under ``root`` that a front end can analyze.

    Inside a git work tree git decides visibility (tracked files plus
    untracked files that are not ignored). Elsewhere the root ``.gitignore``
    is honored. ``extra_ignores`` applies in both cases.

    Args:
        root: Repository root directory.
        extra_ignores: Additional gitignore-style patterns to exclude.
        language_filter: If set, only return files of this language.

    Returns:
        ``(relative_path, language_name)`` tuples sorted by path.
    """
    visible = _git_visible_files(root)
    patterns = list(extra_ignores)
    if visible is None:
        patterns = _read_gitignore(root) + patterns
    excluded = pathspec.PathSpec.from_lines("gitignore", patterns)

    found: list[tuple[Path, str]] = []
    for rel in _walk(root):
        key = rel.as_posix()
        if visible is not None and key not in visible:
            continue
        if excluded.match_file(key):
            continue
        front_end = language_for_extension(rel.suffix)
        if front_end is None:
            continue
        if language_filter and front_end.name != language_filter:
            continue
        found.append((rel, front_end.name))

    found.sort()
    log.debug("discovered %d file(s) under %s", len(found), root)
    return found


def _walk(root: Path) -> Iterator[Path]:
    """Yield root-relative paths of regular, non-hidden files."""
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        dirnames[:] = sorted(
            d for d in dirnames if not d.startswith(".") and d not in SKIP_DIRS
        )
        here = Path(dirpath)
        rel_dir = here.relative_to(root)
        for name in sorted(filenames):
            if name.startswith(".") or (here / name).is_symlink():
                continue
            yield rel_dir / name


def _git_visible_files(root: Path) -> set[str] | None:
    """Files git would show: tracked plus untracked-but-not-ignored.

    Returns:
        Repo-relative POSIX paths, or None when git is unavailable or
        ``root`` is not the top of a work tree.
    """
    if not (root / ".git").exists():
        return None
    cmd = ["git", "ls-files", "--cached", "--others", "--exclude-standard"]
    try:
        proc = subprocess.run(
            cmd,
            cwd=root,
            capture_output=True,
            text=True,
            timeout=_GIT_TIMEOUT,
            check=False,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
        log.debug("git unavailable in %s: %s", root, exc)
        return None
    if proc.returncode != 0:
        log.debug("git ls-files failed in %s: %s", root, proc.stderr.strip())
        return None
    return set(proc.stdout.splitlines())


def _read_gitignore(root: Path) -> list[str]:
    gitignore = root / ".gitignore"
    if not gitignore.is_file():
        return []
    return gitignore.read_text(encoding="utf-8").splitlines()
