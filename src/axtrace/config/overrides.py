"""Manual override ingestion.

Reads ``inspector-map.json`` (or ``.yaml``) from up to three locations::

    ~/.config/axtrace/inspector-map.json      # tool-global
    <project>/.axtrace/inspector-map.json     # project-local, hidden
    <project>/inspector-map.json              # project-local, checked in

Later files win for identical override patterns; ``modulePriority`` and
``criticalMappings`` from later files replace earlier ones when non-empty.

File format::

    {
      "overrides": [
        {"pattern": "home.header.*", "file": "App/HomeView.swift", "ownerType": "HomeHeaderView"},
        {"pattern": "command.bottom.chats", "file": "App/CommandView.swift", "line": 680}
      ],
      "modulePriority": ["AppModule", "SharedUI"],
      "criticalMappings": [{"pattern": "home.create", "minConfidence": 0.9}]
    }
"""

from __future__ import annotations

import json
import re
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from axtrace.config.loader import GLOBAL_CONFIG_DIR, PROJECT_STATE_DIRNAME

log = structlog.get_logger(__name__)

OVERRIDE_FILENAMES = ("inspector-map.json", "inspector-map.yaml", "inspector-map.yml")


class OverrideEntry(BaseModel):
    """A user-declared forced mapping. Always wins over automatic matching."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    pattern: str
    file: str | None = None
    line: int | None = None
    owner_type: str | None = Field(default=None, alias="ownerType")
    module: str | None = None


class CriticalMapping(BaseModel):
    """CI assertion: elements matching ``pattern`` must map with ``min_confidence``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    pattern: str
    min_confidence: float = Field(default=0.7, alias="minConfidence", ge=0.0, le=1.0)


class OverrideConfig(BaseModel):
    """Merged override configuration for one project."""

    model_config = ConfigDict(populate_by_name=True)

    overrides: list[OverrideEntry] = Field(default_factory=list)
    module_priority: list[str] = Field(default_factory=list, alias="modulePriority")
    critical_mappings: list[CriticalMapping] = Field(
        default_factory=list, alias="criticalMappings"
    )
    sources: list[str] = Field(default_factory=list, exclude=True)

    def to_file_dict(self) -> dict:
        """Serialize with the on-disk camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"sources"})


def is_glob(pattern: str) -> bool:
    return "*" in pattern or (len(pattern) > 1 and pattern.startswith("/") and pattern.endswith("/"))


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile an override/critical-mapping pattern to an anchored regex.

    ``/.../`` is a raw regex. ``*`` matches any run of characters, dots
    included, so ``home.*`` covers ``home.header.logo``; ``**`` is accepted
    as an alias. Anything else matches exactly.

    Raises:
        re.error: For an invalid ``/.../`` regex.
    """
    if len(pattern) > 1 and pattern.startswith("/") and pattern.endswith("/"):
        return re.compile(pattern[1:-1])
    pieces = re.split(r"\*+", pattern)
    return re.compile("^" + ".*".join(re.escape(piece) for piece in pieces) + "$")


def candidate_paths(project_root: Path | None) -> list[Path]:
    """Directories searched for an override file, lowest precedence first."""
    dirs = [GLOBAL_CONFIG_DIR]
    if project_root is not None:
        dirs.append(project_root / PROJECT_STATE_DIRNAME)
        dirs.append(project_root)
    return dirs


def _find_file(directory: Path) -> Path | None:
    for name in OVERRIDE_FILENAMES:
        path = directory / name
        if path.is_file():
            return path
    return None


def _read_file(path: Path) -> OverrideConfig | None:
    try:
        text = path.read_text(encoding="utf-8")
        raw = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
        return OverrideConfig.model_validate(raw or {})
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        log.warning("overrides.parse_failed", path=str(path), error=str(e))
    except ValidationError as e:
        log.warning("overrides.parse_failed", path=str(path), error=e.errors()[0]["msg"])
    return None


def merge_override_configs(configs: list[OverrideConfig]) -> OverrideConfig:
    """Merge configs in precedence order; later entries win."""
    by_pattern: dict[str, OverrideEntry] = {}
    module_priority: list[str] = []
    critical: dict[str, CriticalMapping] = {}
    sources: list[str] = []
    for cfg in configs:
        for entry in cfg.overrides:
            by_pattern.pop(entry.pattern, None)
            by_pattern[entry.pattern] = entry
        if cfg.module_priority:
            module_priority = list(cfg.module_priority)
        for mapping in cfg.critical_mappings:
            critical[mapping.pattern] = mapping
        sources.extend(cfg.sources)
    return OverrideConfig(
        overrides=list(by_pattern.values()),
        module_priority=module_priority,
        critical_mappings=list(critical.values()),
        sources=sources,
    )


def load_overrides(project_root: Path | None = None) -> OverrideConfig:
    """Load and merge every override file visible from ``project_root``.

    Never raises: unreadable or malformed files are logged and skipped.
    """
    loaded: list[OverrideConfig] = []
    for directory in candidate_paths(project_root):
        path = _find_file(directory)
        if path is None:
            continue
        cfg = _read_file(path)
        if cfg is None:
            continue
        cfg.sources = [str(path)]
        loaded.append(cfg)

    merged = merge_override_configs(loaded)
    if merged.overrides:
        log.info(
            "overrides.loaded",
            count=len(merged.overrides),
            module_priority=len(merged.module_priority),
            sources=merged.sources,
        )
    return merged


def project_override_path(project_root: Path) -> Path:
    """Where runtime overrides are persisted for a project."""
    return project_root / PROJECT_STATE_DIRNAME / "inspector-map.json"
