"""Module/target graph discovery.

Strategies run in order; the first one that yields at least one resolvable
source file wins:

1. XcodeGen ``project.yml``
2. SwiftPM ``Package.swift``
3. Xcode workspace ``*.xcworkspace``
4. Xcode project ``*.xcodeproj``
5. Directory scan (always succeeds)
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterable
from pathlib import Path

import structlog
import yaml

from axtrace.core.errors import ManifestError
from axtrace.index._internal.discovery.base import DiscoveryStrategy, merge_modules
from axtrace.index._internal.discovery.files import DEFAULT_EXTENSIONS
from axtrace.index._internal.discovery.package import SwiftPackageStrategy
from axtrace.index._internal.discovery.pbxproj import XcodeProjectStrategy
from axtrace.index._internal.discovery.scanner import DirectoryScanStrategy
from axtrace.index._internal.discovery.workspace import WorkspaceStrategy
from axtrace.index._internal.discovery.xcodegen import XcodeGenStrategy
from axtrace.index.models import ModuleIndex

log = structlog.get_logger(__name__)

# The last four surface from manifest values of an unexpected shape
_STRATEGY_ERRORS = (
    OSError,
    UnicodeDecodeError,
    yaml.YAMLError,
    ET.ParseError,
    ManifestError,
    TypeError,
    AttributeError,
    ValueError,
    RecursionError,
)


def default_strategies(extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> list[DiscoveryStrategy]:
    exts = tuple(extensions)
    return [
        XcodeGenStrategy(exts),
        SwiftPackageStrategy(exts),
        WorkspaceStrategy(exts),
        XcodeProjectStrategy(exts),
    ]


def build_module_index(
    project_root: Path,
    *,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    strategies: list[DiscoveryStrategy] | None = None,
) -> ModuleIndex:
    """Discover the project's modules. Never raises for unreadable manifests."""
    exts = tuple(extensions)
    for strategy in strategies if strategies is not None else default_strategies(exts):
        try:
            modules = strategy.discover(project_root)
        except _STRATEGY_ERRORS as e:
            log.debug("module_index.strategy_failed", strategy=strategy.name, error=str(e))
            continue
        if modules is None:
            continue
        modules = merge_modules(modules)
        file_count = sum(len(m.sources) for m in modules)
        if file_count == 0:
            log.debug("module_index.strategy_empty", strategy=strategy.name, modules=len(modules))
            continue
        log.info(
            "module_index.strategy_selected",
            strategy=strategy.name,
            modules=len(modules),
            files=file_count,
        )
        return ModuleIndex(modules={m.name: m for m in modules}, strategy=strategy.name)

    fallback = DirectoryScanStrategy(exts)
    modules = fallback.discover(project_root)
    log.info(
        "module_index.strategy_selected",
        strategy=fallback.name,
        modules=1,
        files=len(modules[0].sources),
    )
    return ModuleIndex(modules={m.name: m for m in modules}, strategy=fallback.name)


__all__ = [
    "DirectoryScanStrategy",
    "DiscoveryStrategy",
    "SwiftPackageStrategy",
    "WorkspaceStrategy",
    "XcodeGenStrategy",
    "XcodeProjectStrategy",
    "build_module_index",
    "default_strategies",
]
