"""Swift Package Manager ``Package.swift`` discovery.

Target declarations are function calls, so each ``.target(`` style call is
cut out by balanced parentheses (on a copy with strings and comments masked)
and its ``name:``, ``dependencies:`` and ``path:`` arguments read by regex.
"""

from __future__ import annotations

import re
from pathlib import Path

from axtrace.index._internal.discovery.base import DiscoveryStrategy
from axtrace.index._internal.discovery.files import collect_source_files
from axtrace.index._internal.parsing.sanitize import blank_strings_and_comments, strip_comments
from axtrace.index.models import ModuleEntry, ProductKind

MANIFEST_NAME = "Package.swift"

_TARGET_CALL = re.compile(r"\.(target|executableTarget|testTarget|macro|plugin)\s*\(")
_NAME = re.compile(r'^\s*name\s*:\s*"([^"]+)"')
_PATH = re.compile(r'\bpath\s*:\s*"([^"]+)"')
_DEPS_START = re.compile(r"\bdependencies\s*:\s*\[")
_DEP_ITEM = re.compile(
    r'\.(?:target|product|byName)\s*\(\s*name\s*:\s*"([^"]+)"[^)]*\)|"([^"]+)"'
)

_KIND_BY_CALL: dict[str, ProductKind] = {
    "target": "library",
    "executableTarget": "executable",
    "testTarget": "test",
    "macro": "macro",
    "plugin": "plugin",
}


def _balanced_end(skeleton: str, start: int, open_ch: str, close_ch: str) -> int | None:
    """Index of the bracket closing the one just before ``start``."""
    depth = 1
    for i in range(start, len(skeleton)):
        ch = skeleton[i]
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return i
    return None


def _parse_dependencies(body: str, skeleton: str) -> list[str]:
    match = _DEPS_START.search(skeleton)
    if not match:
        return []
    end = _balanced_end(skeleton, match.end(), "[", "]")
    if end is None:
        return []
    raw = body[match.end() : end]
    return [m.group(1) or m.group(2) for m in _DEP_ITEM.finditer(raw)]


def parse_package_targets(text: str) -> list[tuple[str, str, list[str], str | None]]:
    """Extract ``(call, name, dependencies, path)`` for each target declaration."""
    code = strip_comments(text)
    skeleton = blank_strings_and_comments(text)
    results: list[tuple[str, str, list[str], str | None]] = []
    pos = 0
    while True:
        match = _TARGET_CALL.search(skeleton, pos)
        if not match:
            break
        end = _balanced_end(skeleton, match.end(), "(", ")")
        if end is None:
            break
        pos = end + 1
        call = match.group(1)
        body = code[match.end() : end]
        body_skeleton = skeleton[match.end() : end]
        name = _NAME.match(body)
        if not name:
            continue
        # Plugin *products* share the call name with plugin targets
        if call == "plugin" and "capability" not in body_skeleton:
            continue
        # Nested dependency calls never carry path:, so the first hit is the target's
        path = _PATH.search(body)
        results.append(
            (
                call,
                name.group(1),
                _parse_dependencies(body, body_skeleton),
                path.group(1) if path else None,
            )
        )
    return results


class SwiftPackageStrategy(DiscoveryStrategy):
    name = "swiftpm"

    def discover(self, project_root: Path) -> list[ModuleEntry] | None:
        manifest = project_root / MANIFEST_NAME
        if not manifest.is_file():
            return None
        targets = parse_package_targets(manifest.read_text(encoding="utf-8"))
        if not targets:
            return None

        modules: list[ModuleEntry] = []
        for call, name, deps, path in targets:
            source_dir = project_root / path if path else project_root / "Sources" / name
            if not path and call == "testTarget" and not source_dir.is_dir():
                source_dir = project_root / "Tests" / name
            modules.append(
                ModuleEntry(
                    name=name,
                    sources=tuple(collect_source_files(source_dir, project_root, self.extensions)),
                    dependencies=tuple(deps),
                    kind=_KIND_BY_CALL[call],
                )
            )
        return modules
