"""Directory-scan fallback: the whole project as one module."""

from __future__ import annotations

from pathlib import Path

from axtrace.index._internal.discovery.base import DiscoveryStrategy
from axtrace.index._internal.discovery.files import collect_source_files
from axtrace.index.models import ModuleEntry


class DirectoryScanStrategy(DiscoveryStrategy):
    """Always applies. Emits a single module named after the root, possibly empty."""

    name = "directory_scan"

    def discover(self, project_root: Path) -> list[ModuleEntry]:
        name = project_root.resolve().name or "root"
        sources = collect_source_files(project_root, project_root, self.extensions)
        return [ModuleEntry(name=name, sources=tuple(sources), kind="unknown")]
