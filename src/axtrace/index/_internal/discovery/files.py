"""Source file collection shared by every discovery strategy."""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable
from pathlib import Path

from axtrace.core.excludes import is_prunable_dir

DEFAULT_EXTENSIONS: tuple[str, ...] = (".swift",)
_GLOB_CHARS = frozenset("*?[")


def _walk_with_pruning(root: Path) -> list[tuple[str, str]]:
    """Walk all files, pruning hidden/build/vendor dirs. Returns (rel_dir_posix, filename)."""
    results: list[tuple[str, str]] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not is_prunable_dir(d))
        rel_dir_posix = Path(dirpath).relative_to(root).as_posix()
        if rel_dir_posix == ".":
            rel_dir_posix = ""
        for filename in sorted(filenames):
            results.append((rel_dir_posix, filename))
    return results


def collect_source_files(
    directory: Path,
    project_root: Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> list[str]:
    """Source files under ``directory`` as posix paths relative to ``project_root``."""
    if not directory.is_dir():
        return []
    exts = tuple(extensions)
    base = Path(os.path.relpath(directory, project_root)).as_posix()
    if base == ".":
        base = ""
    results: list[str] = []
    for rel_dir, filename in _walk_with_pruning(directory):
        if not filename.endswith(exts):
            continue
        parts = [p for p in (base, rel_dir, filename) if p]
        results.append("/".join(parts))
    return results


def has_glob(spec: str) -> bool:
    return any(ch in _GLOB_CHARS for ch in spec)


def resolve_source_spec(
    project_root: Path,
    spec: str,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> list[str]:
    """Resolve one manifest ``sources`` entry to relative source paths.

    ``dir/**`` and ``dir/*`` walk ``dir``; any other glob filters a full
    project walk with fnmatch; plain paths are a directory or a single file.
    """
    exts = tuple(extensions)
    spec = spec.strip().strip("\"'").rstrip("/")
    if not spec:
        return []

    for suffix in ("/**", "/*"):
        if spec.endswith(suffix) and not has_glob(spec[: -len(suffix)]):
            return collect_source_files(project_root / spec[: -len(suffix)], project_root, exts)

    if has_glob(spec):
        return [
            path
            for path in collect_source_files(project_root, project_root, exts)
            if fnmatch.fnmatch(path, spec)
        ]

    target = project_root / spec
    if target.is_file():
        return [Path(spec).as_posix()] if spec.endswith(exts) else []
    return collect_source_files(target, project_root, exts)


def dedupe(paths: Iterable[str]) -> list[str]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(paths))
