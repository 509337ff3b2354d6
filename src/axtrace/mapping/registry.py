"""Identifier registry: a persisted exact/pattern identifier map.

The registry is a JSON snapshot of every identifier literal in the project,
generated from the source indexes. Once built it is authoritative for
elements whose identifier it knows: ``apply_registry`` replaces automatic
mappings with a registry hit.

Search order when loading::

    <explicit path>
    <project>/.axtrace/identifier-registry.json
    ~/.cache/axtrace/artifacts/identifier-registry.json

A registry generated for a different project path is ignored.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog

from axtrace.config.loader import PROJECT_STATE_DIRNAME
from axtrace.config.models import AxTraceConfig
from axtrace.index._internal.parsing.trie import PrefixTrie
from axtrace.index.models import SourceIndexes
from axtrace.mapping.contract import Candidate, EnrichedElement, Evidence, SignalType
from axtrace.mapping.matcher import IDENTIFIER_ORIGINS

log = structlog.get_logger(__name__)

SCHEMA_VERSION = "1.0.0"


@dataclass(slots=True)
class LoadedRegistry:
    path: Path
    registry: dict[str, Any]


@dataclass(slots=True)
class EnsureResult:
    """Outcome of ``ensure_registry``."""

    path: Path
    registry: dict[str, Any]
    rebuilt: bool
    reason: str


@dataclass(slots=True)
class ApplyResult:
    elements: list[EnrichedElement]
    stats: dict[str, int] = field(default_factory=dict)


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, UTC).isoformat()


def _parse_iso(value: Any) -> float | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value).timestamp()
    except ValueError:
        return None


def build_registry(
    project_root: Path,
    indexes: SourceIndexes,
    *,
    clock: Callable[[], float] = time.time,
) -> dict[str, Any]:
    """Registry payload for the identifier literals in ``indexes``."""
    project_root = project_root.resolve()
    modules = indexes.modules
    exact: dict[str, list[dict[str, Any]]] = {}
    patterns: list[dict[str, Any]] = []

    def record(entry: Any) -> dict[str, Any]:
        return {
            "identifier": entry.literal,
            "matchType": entry.kind,
            "file": entry.file,
            "line": entry.line or 1,
            "ownerType": entry.owner,
            "module": modules.module_for_file(entry.file),
            "context": entry.context,
            "prefix": entry.prefix,
            "suffix": entry.suffix,
        }

    for literal, entries in indexes.identifiers.items():
        for entry in entries:
            if entry.kind == "exact" and entry.origin in IDENTIFIER_ORIGINS:
                exact.setdefault(literal, []).append(record(entry))
    for entry in indexes.patterns:
        if entry.origin in IDENTIFIER_ORIGINS:
            patterns.append(record(entry))

    return {
        "schemaVersion": SCHEMA_VERSION,
        "generatedAt": _iso(clock()),
        "projectPath": str(project_root),
        "summary": {
            "exactIdentifiers": len(exact),
            "patternIdentifiers": len(patterns),
            "modules": len(modules.modules),
            "sourceFiles": len(modules.all_files()),
        },
        "entries": {"exact": exact, "patterns": patterns},
    }


def save_registry(registry: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(registry, indent=2), encoding="utf-8")
    return path


def registry_paths(
    project_root: Path, config: AxTraceConfig, explicit_path: Path | None = None
) -> list[Path]:
    if explicit_path is not None:
        return [explicit_path]
    filename = config.registry.filename
    return [
        project_root / PROJECT_STATE_DIRNAME / filename,
        Path(config.registry.fallback_dir).expanduser() / filename,
    ]


def _records(raw: Any) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    return [record for record in raw if isinstance(record, dict)]


def _entries(
    registry: dict[str, Any],
) -> tuple[dict[str, list[dict[str, Any]]], list[dict[str, Any]]]:
    """Exact map and pattern list, with anything that is not a record dropped."""
    entries = registry.get("entries")
    if not isinstance(entries, dict):
        return {}, []
    exact = entries.get("exact")
    exact_map = (
        {str(k): _records(v) for k, v in exact.items()} if isinstance(exact, dict) else {}
    )
    return exact_map, _records(entries.get("patterns"))


def registry_problem(raw: Any) -> str | None:
    """Describe why ``raw`` is not a usable registry payload, or None."""
    if not isinstance(raw, dict):
        return "top level is not an object"
    if raw.get("schemaVersion") != SCHEMA_VERSION:
        return f"unsupported schemaVersion {raw.get('schemaVersion')!r}"
    entries = raw.get("entries")
    if not isinstance(entries, dict):
        return "'entries' is not an object"
    exact = entries.get("exact", {})
    if not isinstance(exact, dict) or not all(
        isinstance(v, list) and all(isinstance(r, dict) for r in v) for v in exact.values()
    ):
        return "'entries.exact' is not a map of record lists"
    patterns = entries.get("patterns", [])
    if not isinstance(patterns, list) or not all(isinstance(r, dict) for r in patterns):
        return "'entries.patterns' is not a record list"
    return None


def load_registry(
    project_root: Path,
    *,
    config: AxTraceConfig | None = None,
    explicit_path: Path | None = None,
) -> LoadedRegistry | None:
    """First readable registry for this project, or None.

    Files that fail to parse or do not have the registry shape are skipped,
    so ``ensure_registry`` rebuilds them.
    """
    project_root = project_root.resolve()
    config = config or AxTraceConfig()
    for path in registry_paths(project_root, config, explicit_path):
        if not path.is_file():
            continue
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            log.debug("registry.read_failed", path=str(path), error=str(e))
            continue
        problem = registry_problem(raw)
        if problem is not None:
            log.debug("registry.invalid", path=str(path), reason=problem)
            continue
        owner = raw.get("projectPath")
        if owner and (not isinstance(owner, str) or Path(owner).resolve() != project_root):
            log.debug("registry.other_project", path=str(path), project=owner)
            continue
        return LoadedRegistry(path, raw)
    return None


def newest_source_mtime(project_root: Path, indexes: SourceIndexes) -> float:
    newest = 0.0
    for rel in indexes.modules.all_files():
        try:
            newest = max(newest, (project_root / rel).stat().st_mtime)
        except OSError:
            continue
    return newest


def ensure_registry(
    project_root: Path,
    indexes: SourceIndexes,
    *,
    config: AxTraceConfig | None = None,
    explicit_path: Path | None = None,
    clock: Callable[[], float] = time.time,
) -> EnsureResult:
    """Load the project's registry, rebuilding it when missing or stale.

    A registry is stale when any indexed source file was modified after its
    ``generatedAt`` timestamp.
    """
    project_root = project_root.resolve()
    config = config or AxTraceConfig()
    loaded = load_registry(project_root, config=config, explicit_path=explicit_path)

    if loaded is not None:
        generated = _parse_iso(loaded.registry.get("generatedAt"))
        newest = newest_source_mtime(project_root, indexes)
        if generated is not None and newest <= generated:
            log.debug("registry.fresh", path=str(loaded.path))
            return EnsureResult(loaded.path, loaded.registry, rebuilt=False, reason="fresh")
        reason = "stale"
        path = loaded.path
    else:
        reason = "missing"
        path = registry_paths(project_root, config, explicit_path)[0]

    registry = build_registry(project_root, indexes, clock=clock)
    try:
        save_registry(registry, path)
    except OSError as e:
        log.warning("registry.write_failed", path=str(path), error=str(e))
    log.info(
        "registry.rebuilt",
        path=str(path),
        reason=reason,
        exact=registry["summary"]["exactIdentifiers"],
        patterns=registry["summary"]["patternIdentifiers"],
    )
    return EnsureResult(path, registry, rebuilt=True, reason=reason)


def _pattern_trie(patterns: list[dict[str, Any]]) -> PrefixTrie[dict[str, Any]]:
    trie: PrefixTrie[dict[str, Any]] = PrefixTrie()
    for record in patterns:
        prefix = record.get("prefix")
        if isinstance(prefix, str) and prefix:
            suffix = record.get("suffix")
            trie.insert(prefix, suffix if isinstance(suffix, str) else "", record)
    return trie


def _registry_evidence(record: dict[str, Any], weight: float) -> Evidence:
    return Evidence(
        SignalType.IDENTIFIER_EXACT,
        weight,
        record.get("file"),
        record.get("line"),
        f"Identifier registry {record.get('matchType')} match: {record.get('identifier')}",
    )


def _pick(matches: list[dict[str, Any]], module: str | None) -> dict[str, Any]:
    if module:
        for record in matches:
            if record.get("module") == module:
                return record
    return matches[0]


def apply_registry(
    elements: list[EnrichedElement],
    registry: dict[str, Any],
    *,
    confidence: float = 0.96,
    weight: float = 0.9,
) -> ApplyResult:
    """Replace automatic mappings with registry hits.

    Manually overridden elements and elements without an identifier are left
    untouched. The exact map is consulted first, then the pattern trie.
    """
    exact, patterns = _entries(registry)
    trie = _pattern_trie(patterns)

    applied = ambiguous = 0
    patched: list[EnrichedElement] = []
    for enriched in elements:
        identifier = enriched.element.identifier
        if not identifier or enriched.provenance == "manual":
            patched.append(enriched)
            continue
        matches = list(exact.get(identifier) or []) or trie.lookup(identifier)
        if not matches:
            patched.append(enriched)
            continue

        primary = _pick(matches, enriched.module)
        candidates = [
            Candidate(
                file=record.get("file"),
                line=record.get("line"),
                owner=record.get("ownerType"),
                module=record.get("module"),
                evidence=[_registry_evidence(record, weight)],
                confidence=confidence,
            )
            for record in matches
        ]
        multiple = len(matches) > 1
        applied += 1
        ambiguous += multiple
        patched.append(
            replace(
                enriched,
                file=primary.get("file"),
                line=primary.get("line"),
                owner=primary.get("ownerType") or enriched.owner,
                module=primary.get("module") or enriched.module,
                confidence=max(enriched.confidence, confidence),
                evidence=[_registry_evidence(primary, weight)],
                provenance="auto",
                ambiguous=multiple,
                ambiguity_score=len(matches) / 2 if multiple else 0.0,
                ambiguity_reason=(
                    f"Multiple registry entries ({len(matches)})" if multiple else "Registry match"
                ),
                candidates=candidates[:5],
                from_registry=True,
            )
        )

    log.debug("registry.applied", applied=applied, ambiguous=ambiguous)
    return ApplyResult(patched, {"applied": applied, "ambiguous": ambiguous})
