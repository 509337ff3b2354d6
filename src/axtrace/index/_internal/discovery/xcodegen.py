"""XcodeGen ``project.yml`` discovery.

Handles the target shapes XcodeGen documents::

    targets:
      MyApp:
        type: application
        sources: [Sources/MyApp]          # or a scalar, or an indented list
        dependencies:
          - target: SharedUI
          - package: Networking
      SharedUI:
        type: framework
        sources:
          - path: Modules/SharedUI/**
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from axtrace.core.errors import ManifestError
from axtrace.index._internal.discovery.base import DiscoveryStrategy, product_kind
from axtrace.index._internal.discovery.files import dedupe, resolve_source_spec
from axtrace.index.models import ModuleEntry

MANIFEST_NAME = "project.yml"


def _source_specs(raw: Any, target: str, manifest: Path) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        raise ManifestError.malformed(str(manifest), f"'{target}.sources' is not a list")
    specs: list[str] = []
    for item in raw:
        if isinstance(item, str):
            specs.append(item)
        elif isinstance(item, dict) and isinstance(item.get("path"), str):
            specs.append(item["path"])
    return specs


def _dependency_names(raw: Any) -> list[str]:
    names: list[str] = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        for key in ("target", "package"):
            value = item.get(key)
            if isinstance(value, str):
                # "OtherProject/Target" cross-project references keep the target name
                names.append(value.rsplit("/", 1)[-1])
                break
    return names


def parse_targets(document: Any, manifest: Path) -> dict[str, dict[str, Any]]:
    """Return the ``targets`` mapping, validating its shape."""
    if not isinstance(document, dict):
        raise ManifestError.malformed(str(manifest), "top level is not a mapping")
    targets = document.get("targets")
    if targets is None:
        return {}
    if not isinstance(targets, dict):
        raise ManifestError.malformed(str(manifest), "'targets' is not a mapping")
    return {str(name): spec or {} for name, spec in targets.items() if isinstance(spec, dict | None)}


class XcodeGenStrategy(DiscoveryStrategy):
    name = "xcodegen"

    def discover(self, project_root: Path) -> list[ModuleEntry] | None:
        manifest = project_root / MANIFEST_NAME
        if not manifest.is_file():
            return None
        document = yaml.safe_load(manifest.read_text(encoding="utf-8"))
        targets = parse_targets(document, manifest)
        if not targets:
            return None

        modules: list[ModuleEntry] = []
        for name, spec in targets.items():
            kind = spec.get("type")
            if kind is not None and not isinstance(kind, str):
                raise ManifestError.malformed(str(manifest), f"'{name}.type' is not a string")
            sources: list[str] = []
            for source_spec in _source_specs(spec.get("sources"), name, manifest):
                sources.extend(resolve_source_spec(project_root, source_spec, self.extensions))
            modules.append(
                ModuleEntry(
                    name=name,
                    sources=tuple(dedupe(sources)),
                    dependencies=tuple(_dependency_names(spec.get("dependencies"))),
                    kind=product_kind(kind),
                )
            )
        return modules
