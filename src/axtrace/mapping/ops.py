"""Scan pipeline: discover, index, match, apply registry, measure.

``run_scan`` is the public entry point used by the CLI. It runs to
completion synchronously; nothing in it is fatal for a single element.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from axtrace.config.loader import get_state_dir, load_config
from axtrace.config.models import AxTraceConfig
from axtrace.core.logging import set_scan_id
from axtrace.index._internal.state import JsonFileStore, KeyValueStore
from axtrace.index.models import SourceIndexes
from axtrace.index.ops import build_source_indexes, summarize_indexes
from axtrace.mapping.contract import EnrichedElement
from axtrace.mapping.diagnostics import compute_metrics
from axtrace.mapping.elements import UIElement
from axtrace.mapping.matcher import match_all
from axtrace.mapping.registry import apply_registry, ensure_registry
from axtrace.mapping.session import MatchSession

log = structlog.get_logger(__name__)


@dataclass
class ScanResult:
    """Everything one scan produced."""

    elements: list[EnrichedElement]
    metrics: dict[str, Any]
    index_summary: dict[str, Any]
    registry_stats: dict[str, Any] = field(default_factory=dict)
    indexes: SourceIndexes | None = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "elements": [e.to_dict() for e in self.elements],
            "metrics": self.metrics,
            "index": self.index_summary,
            "registry": self.registry_stats,
        }


def run_scan(
    project_root: Path,
    elements: list[UIElement],
    *,
    config: AxTraceConfig | None = None,
    session: MatchSession | None = None,
    use_registry: bool = True,
    store: KeyValueStore | None = None,
) -> ScanResult:
    """Map ``elements`` onto the sources under ``project_root``."""
    set_scan_id()
    project_root = project_root.resolve()
    if session is not None:
        config = config or session.config
    config = config or load_config(project_root)
    if store is None and session is not None:
        store = session.store
    if store is None:
        store = JsonFileStore(get_state_dir(project_root, config))
    if session is None:
        session = MatchSession.load(project_root, config, store=store)

    indexes = build_source_indexes(project_root, store=store, config=config)
    enriched = match_all(elements, indexes, session=session)

    registry_stats: dict[str, Any] = {}
    if use_registry and config.registry.enabled:
        ensured = ensure_registry(project_root, indexes, config=config)
        applied = apply_registry(
            enriched, ensured.registry, confidence=config.registry.confidence
        )
        enriched = applied.elements
        registry_stats = {
            **applied.stats,
            "path": str(ensured.path),
            "rebuilt": ensured.rebuilt,
        }

    metrics = compute_metrics(enriched)
    log.info(
        "scan.complete",
        elements=metrics["total"],
        mapped=metrics["mapped"],
        coverage=metrics["coverage"],
    )
    return ScanResult(
        elements=enriched,
        metrics=metrics,
        index_summary=summarize_indexes(indexes),
        registry_stats=registry_stats,
        indexes=indexes,
    )
