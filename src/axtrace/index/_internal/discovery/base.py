"""Discovery strategy contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

from axtrace.index._internal.discovery.files import DEFAULT_EXTENSIONS
from axtrace.index.models import ModuleEntry, ProductKind


class DiscoveryStrategy(ABC):
    """One way of reading a project's module structure.

    ``discover`` returns None when the strategy does not apply (manifest
    missing). Parse failures propagate and are handled by the caller.
    """

    name: str = "unknown"

    def __init__(self, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> None:
        self.extensions = tuple(extensions)

    @abstractmethod
    def discover(self, project_root: Path) -> list[ModuleEntry] | None: ...


def merge_modules(modules: list[ModuleEntry]) -> list[ModuleEntry]:
    """Collapse same-named modules, unioning their sources and dependencies."""
    merged: dict[str, ModuleEntry] = {}
    for module in modules:
        existing = merged.get(module.name)
        if existing is None:
            merged[module.name] = module
            continue
        merged[module.name] = ModuleEntry(
            name=module.name,
            sources=tuple(dict.fromkeys(existing.sources + module.sources)),
            dependencies=tuple(dict.fromkeys(existing.dependencies + module.dependencies)),
            kind=existing.kind if existing.kind != "unknown" else module.kind,
        )
    return list(merged.values())


def product_kind(raw: str | None) -> ProductKind:
    """Map an XcodeGen target type or pbxproj productType onto a ProductKind."""
    if not raw:
        return "unknown"
    value = raw.strip('"').removeprefix("com.apple.product-type.").lower()
    if "test" in value:
        return "test"
    if "extension" in value or value.startswith("app-extension"):
        return "extension"
    if value.startswith("application"):
        return "application"
    if "framework" in value:
        return "framework"
    if "library" in value:
        return "library"
    if "tool" in value or "executable" in value:
        return "executable"
    if "bundle" in value:
        return "bundle"
    return "unknown"
