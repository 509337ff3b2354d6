"""Source index building.

``build_source_indexes`` is the public entry point: discover modules, read
every source file once, and either reuse the cached indexes (unchanged
fingerprint) or parse each file into type, identifier and label entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from axtrace.config.models import AxTraceConfig
from axtrace.index._internal.discovery import build_module_index
from axtrace.index._internal.parsing.identifiers import parse_identifiers
from axtrace.index._internal.parsing.labels import parse_labels
from axtrace.index._internal.parsing.owners import owner_ranges
from axtrace.index._internal.parsing.types import merge_type_entries, parse_types
from axtrace.index._internal.state import (
    KeyValueStore,
    compute_fingerprint,
    content_hash,
    load_cached_indexes,
    project_key,
    save_cached_indexes,
)
from axtrace.index.models import (
    IdentifierEntry,
    LabelEntry,
    ModuleIndex,
    SourceIndexes,
    TypeEntry,
)

log = structlog.get_logger(__name__)


@dataclass
class _SourceFile:
    path: str
    text: str


def _read_sources(
    project_root: Path, module_index: ModuleIndex, max_bytes: int
) -> tuple[list[_SourceFile], dict[str, str]]:
    files: list[_SourceFile] = []
    hashes: dict[str, str] = {}
    for rel in module_index.all_files():
        path = project_root / rel
        try:
            if path.stat().st_size > max_bytes:
                log.debug("source_indexes.skip_large", path=rel)
                continue
            data = path.read_bytes()
        except OSError as e:
            log.debug("source_indexes.skip_unreadable", path=rel, error=str(e))
            continue
        hashes[rel] = content_hash(data)
        files.append(_SourceFile(rel, data.decode("utf-8", errors="replace")))
    return files, hashes


def parse_sources(module_index: ModuleIndex, files: list[_SourceFile]) -> SourceIndexes:
    """Parse already-read files into a fresh ``SourceIndexes``."""
    types: list[TypeEntry] = []
    identifiers: dict[str, list[IdentifierEntry]] = {}
    patterns: list[IdentifierEntry] = []
    labels: dict[str, list[LabelEntry]] = {}

    for source in files:
        owners = owner_ranges(source.text)
        types.extend(parse_types(source.text, source.path))
        for entry in parse_identifiers(source.text, source.path, owners):
            if entry.kind == "pattern":
                patterns.append(entry)
            else:
                identifiers.setdefault(entry.literal, []).append(entry)
        for label in parse_labels(source.text, source.path, owners):
            labels.setdefault(label.text, []).append(label)

    return SourceIndexes(
        modules=module_index,
        types=merge_type_entries(types),
        identifiers=identifiers,
        patterns=patterns,
        labels=labels,
    )


def build_source_indexes(
    project_root: Path,
    *,
    store: KeyValueStore | None = None,
    config: AxTraceConfig | None = None,
) -> SourceIndexes:
    """Discover modules and build (or load cached) source indexes.

    Never raises for unreadable sources or manifests: those files and
    strategies are skipped.
    """
    config = config or AxTraceConfig()
    project_root = project_root.resolve()
    module_index = build_module_index(project_root, extensions=config.index.source_extensions)
    files, hashes = _read_sources(
        project_root, module_index, config.index.max_file_size_kb * 1024
    )

    key = project_key(project_root)
    fingerprint = compute_fingerprint(hashes, key)
    cache = store if config.index.use_cache else None

    if cache is not None:
        cached = load_cached_indexes(cache, fingerprint)
        if cached is not None:
            log.info("source_indexes.cache_hit", files=len(files))
            # Manifest edits can move files between modules without changing any source
            cached.modules = module_index
            return cached

    log.info("source_indexes.build", files=len(files), strategy=module_index.strategy)
    indexes = parse_sources(module_index, files)

    if cache is not None:
        try:
            save_cached_indexes(cache, fingerprint, key, indexes)
        except OSError as e:
            log.warning("source_indexes.cache_write_failed", error=str(e))
    return indexes


def summarize_indexes(indexes: SourceIndexes) -> dict[str, Any]:
    """Counts for status output and scan results."""
    return {
        "strategy": indexes.modules.strategy,
        "modules": len(indexes.modules.modules),
        "files": len(indexes.modules.all_files()),
        "type_keys": len(indexes.types),
        "identifier_keys": len(indexes.identifiers),
        "pattern_count": len(indexes.patterns),
        "label_keys": len(indexes.labels),
    }
