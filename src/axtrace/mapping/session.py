"""Per-project matching state.

A ``MatchSession`` carries everything the matcher needs beyond the source
indexes: learned signal weights, config and runtime overrides, module
priority and critical mappings. It is loaded explicitly at the start of a
scan and persisted only on demand.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog

from axtrace.config.loader import get_state_dir, load_config
from axtrace.config.models import AxTraceConfig
from axtrace.config.overrides import (
    CriticalMapping,
    OverrideConfig,
    OverrideEntry,
    compile_pattern,
    is_glob,
    load_overrides,
    merge_override_configs,
    project_override_path,
)
from axtrace.core.errors import ConfigError
from axtrace.index._internal.state import JsonFileStore, KeyValueStore
from axtrace.mapping.contract import DEFAULT_WEIGHTS, SignalType

log = structlog.get_logger(__name__)

WEIGHTS_KEY = "learned-weights"
LEARNING_RATE = 0.05
MIN_WEIGHT = 0.1
MAX_WEIGHT = 1.0


@dataclass(frozen=True, slots=True)
class CompiledOverride:
    entry: OverrideEntry
    regex: re.Pattern[str] | None  # None: exact match on the pattern text

    def matches(self, value: str) -> bool:
        if self.regex is None:
            return value == self.entry.pattern
        return self.regex.search(value) is not None


def _parse_weights(raw: Any) -> dict[SignalType, float]:
    if not isinstance(raw, dict):
        return {}
    weights: dict[SignalType, float] = {}
    for name, value in (raw.get("weights") or {}).items():
        try:
            signal = SignalType(name)
            weights[signal] = min(MAX_WEIGHT, max(MIN_WEIGHT, float(value)))
        except (ValueError, TypeError):
            log.debug("session.weight_ignored", signal=name)
    return weights


@dataclass
class MatchSession:
    """Mutable matching state for one project."""

    project_root: Path | None = None
    config: AxTraceConfig = field(default_factory=AxTraceConfig)
    overrides: OverrideConfig = field(default_factory=OverrideConfig)
    learned_weights: dict[SignalType, float] = field(default_factory=dict)
    runtime_overrides: list[OverrideEntry] = field(default_factory=list)
    store: KeyValueStore | None = None
    _compiled: list[CompiledOverride] | None = field(default=None, init=False, repr=False)

    @classmethod
    def load(
        cls,
        project_root: Path,
        config: AxTraceConfig | None = None,
        *,
        store: KeyValueStore | None = None,
    ) -> MatchSession:
        """Read override config and learned weights for ``project_root``."""
        project_root = project_root.resolve()
        config = config or load_config(project_root)
        if store is None:
            store = JsonFileStore(get_state_dir(project_root, config))
        session = cls(
            project_root=project_root,
            config=config,
            overrides=load_overrides(project_root),
            learned_weights=_parse_weights(store.get(WEIGHTS_KEY)),
            store=store,
        )
        log.debug(
            "session.loaded",
            overrides=len(session.overrides.overrides),
            learned_weights=len(session.learned_weights),
        )
        return session

    # ------------------------------------------------------------------
    # Weights
    # ------------------------------------------------------------------

    def effective_weight(self, signal: SignalType) -> float:
        return self.learned_weights.get(signal, DEFAULT_WEIGHTS[signal])

    def record_feedback(self, signal: SignalType, correct: bool) -> float:
        """Nudge a signal's learned weight up or down; returns the new weight."""
        current = self.effective_weight(signal)
        delta = LEARNING_RATE if correct else -LEARNING_RATE
        updated = round(min(MAX_WEIGHT, max(MIN_WEIGHT, current + delta)), 2)
        self.learned_weights[signal] = updated
        return updated

    def persist_weights(self) -> None:
        if self.store is None:
            raise ValueError("session has no store to persist weights to")
        self.store.set(
            WEIGHTS_KEY,
            {
                "weights": {s.value: w for s, w in self.learned_weights.items()},
                "updated_at": datetime.now(UTC).isoformat(),
            },
        )

    # ------------------------------------------------------------------
    # Overrides
    # ------------------------------------------------------------------

    @property
    def module_priority(self) -> list[str]:
        return self.overrides.module_priority

    @property
    def critical_mappings(self) -> list[CriticalMapping]:
        return self.overrides.critical_mappings

    def all_overrides(self) -> list[OverrideEntry]:
        """Runtime overrides first (newest first), then config overrides."""
        return [*reversed(self.runtime_overrides), *self.overrides.overrides]

    def compiled_overrides(self) -> list[CompiledOverride]:
        if self._compiled is None:
            compiled: list[CompiledOverride] = []
            for entry in self.all_overrides():
                try:
                    regex = compile_pattern(entry.pattern) if is_glob(entry.pattern) else None
                except re.error as e:
                    log.warning("overrides.invalid_pattern", pattern=entry.pattern, error=str(e))
                    continue
                compiled.append(CompiledOverride(entry, regex))
            self._compiled = compiled
        return self._compiled

    def add_runtime_override(self, entry: OverrideEntry) -> OverrideEntry:
        """Register an override for this session.

        Raises:
            ConfigError: If the entry's file resolves outside the project root.
        """
        if entry.file and self.project_root is not None:
            root = self.project_root.resolve()
            target = (root / entry.file).resolve()
            if target != root and not target.is_relative_to(root):
                raise ConfigError.path_outside_root(entry.file, str(root))
        self.runtime_overrides.append(entry)
        self._compiled = None
        log.info("overrides.runtime_added", pattern=entry.pattern, file=entry.file)
        return entry

    def persist_runtime_overrides(self) -> Path:
        """Merge runtime overrides into ``<project>/.axtrace/inspector-map.json``."""
        if self.project_root is None:
            raise ValueError("session has no project root")
        path = project_override_path(self.project_root)
        existing = OverrideConfig()
        if path.is_file():
            try:
                existing = OverrideConfig.model_validate(json.loads(path.read_text("utf-8")))
            except (OSError, ValueError) as e:
                log.warning("overrides.parse_failed", path=str(path), error=str(e))
        merged = merge_override_configs(
            [existing, OverrideConfig(overrides=list(self.runtime_overrides))]
        )
        merged.module_priority = existing.module_priority
        merged.critical_mappings = existing.critical_mappings
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(merged.to_file_dict(), indent=2) + "\n", encoding="utf-8")
        log.info("overrides.persisted", path=str(path), count=len(merged.overrides))
        return path
