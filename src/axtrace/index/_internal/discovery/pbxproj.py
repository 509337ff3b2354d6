"""Xcode ``*.xcodeproj/project.pbxproj`` discovery.

The project file is an ID-referenced object graph. Source paths are never
taken from a file reference's basename: they are rebuilt by walking the group
hierarchy from ``mainGroup`` and joining ``path`` segments according to each
node's ``sourceTree``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from axtrace.core.errors import ManifestError
from axtrace.index._internal.discovery.base import DiscoveryStrategy, product_kind
from axtrace.index._internal.discovery.files import collect_source_files, dedupe
from axtrace.index._internal.discovery.openstep import parse_openstep
from axtrace.index.models import ModuleEntry

PBXPROJ_NAME = "project.pbxproj"

_GROUP_ISAS = frozenset(
    {"PBXGroup", "PBXVariantGroup", "XCVersionGroup", "PBXFileSystemSynchronizedRootGroup"}
)


class PbxGraph:
    """Object graph of one project.pbxproj with resolved node paths.

    Node paths are absolute ``Path`` objects; callers relativize them.
    """

    def __init__(self, document: Any, project_dir: Path, source: str) -> None:
        if not isinstance(document, dict) or not isinstance(document.get("objects"), dict):
            raise ManifestError.malformed(source, "missing 'objects' dictionary")
        self.objects: dict[str, dict[str, Any]] = {
            k: v for k, v in document["objects"].items() if isinstance(v, dict)
        }
        self.project_dir = project_dir
        self.source = source
        root_id = document.get("rootObject")
        self.project: dict[str, Any] = self.objects.get(root_id, {}) if root_id else {}
        if self.project.get("isa") != "PBXProject":
            raise ManifestError.malformed(source, "rootObject is not a PBXProject")
        self.source_root = project_dir / self._text(self.project, "projectDirPath")
        self.paths: dict[str, Path] = {}
        main_group = self.project.get("mainGroup")
        if main_group:
            self._resolve(main_group, self.source_root, set())

    def _resolve(self, node_id: str, parent: Path, seen: set[str]) -> None:
        if node_id in seen:
            return
        seen.add(node_id)
        node = self.objects.get(node_id)
        if node is None:
            return
        path = self._node_path(node, parent)
        if path is None:
            return
        self.paths[node_id] = path
        if node.get("isa") in _GROUP_ISAS:
            for child in node.get("children", ()):
                self._resolve(child, path, seen)

    def _text(self, node: dict[str, Any], key: str, default: str = "") -> str:
        value = node.get(key, default)
        if not isinstance(value, str):
            raise ManifestError.malformed(self.source, f"'{key}' is not a string")
        return value

    def _node_path(self, node: dict[str, Any], parent: Path) -> Path | None:
        rel = self._text(node, "path")
        tree = self._text(node, "sourceTree", "<group>")
        if tree == "<group>":
            return parent / rel if rel else parent
        if tree == "SOURCE_ROOT":
            return self.source_root / rel
        if tree == "<absolute>":
            return Path(rel)
        # BUILT_PRODUCTS_DIR, SDKROOT, DEVELOPER_DIR: outside the source tree
        return None

    def path_of(self, node_id: str) -> Path | None:
        if node_id in self.paths:
            return self.paths[node_id]
        # Synchronized groups referenced only by a target may sit outside mainGroup
        node = self.objects.get(node_id)
        if node is not None:
            return self._node_path(node, self.source_root)
        return None

    def targets(self) -> list[tuple[str, dict[str, Any]]]:
        ids = self.project.get("targets") or [
            k for k, v in self.objects.items() if v.get("isa") == "PBXNativeTarget"
        ]
        return [
            (tid, self.objects[tid])
            for tid in ids
            if self.objects.get(tid, {}).get("isa") == "PBXNativeTarget"
        ]

    def dependency_names(self, target: dict[str, Any]) -> list[str]:
        names: list[str] = []
        for dep_id in target.get("dependencies", ()):
            dep = self.objects.get(dep_id, {})
            target_id = dep.get("target")
            proxy = self.objects.get(dep.get("targetProxy", ""), {})
            if not target_id:
                target_id = proxy.get("remoteGlobalIDString")
            name = self.objects.get(target_id, {}).get("name") if target_id else None
            name = name or dep.get("name") or proxy.get("remoteInfo")
            if name:
                names.append(name)
        return names


def _relative(path: Path, project_root: Path) -> str:
    return Path(os.path.relpath(path, project_root)).as_posix()


def _synchronized_sources(
    graph: PbxGraph,
    target_id: str,
    target: dict[str, Any],
    project_root: Path,
    extensions: tuple[str, ...],
) -> list[str]:
    sources: list[str] = []
    for group_id in target.get("fileSystemSynchronizedGroups", ()):
        directory = graph.path_of(group_id)
        if directory is None:
            continue
        excluded: set[str] = set()
        for exc_id in graph.objects.get(group_id, {}).get("exceptions", ()):
            exc = graph.objects.get(exc_id, {})
            if exc.get("target") == target_id:
                excluded.update(
                    _relative(directory / m, project_root)
                    for m in exc.get("membershipExceptions", ())
                )
        sources.extend(
            p
            for p in collect_source_files(directory, project_root, extensions)
            if p not in excluded
        )
    return sources


def _build_phase_sources(
    graph: PbxGraph,
    target: dict[str, Any],
    project_root: Path,
    extensions: tuple[str, ...],
) -> list[str]:
    sources: list[str] = []
    for phase_id in target.get("buildPhases", ()):
        phase = graph.objects.get(phase_id, {})
        if phase.get("isa") != "PBXSourcesBuildPhase":
            continue
        for build_file_id in phase.get("files", ()):
            file_ref = graph.objects.get(build_file_id, {}).get("fileRef")
            if not file_ref:
                continue
            path = graph.path_of(file_ref)
            if path is not None and path.name.endswith(extensions):
                sources.append(_relative(path, project_root))
    return sources


def parse_xcodeproj(
    xcodeproj: Path,
    project_root: Path,
    extensions: tuple[str, ...] = (".swift",),
) -> list[ModuleEntry]:
    """Modules of one ``.xcodeproj`` bundle, paths relative to ``project_root``.

    Raises:
        ManifestError: If the pbxproj is not a well-formed project graph.
        OSError: If the pbxproj cannot be read.
    """
    pbxproj = xcodeproj / PBXPROJ_NAME
    document = parse_openstep(pbxproj.read_text(encoding="utf-8"), str(pbxproj))
    graph = PbxGraph(document, xcodeproj.parent, str(pbxproj))

    modules: list[ModuleEntry] = []
    for target_id, target in graph.targets():
        name = target.get("name") or target.get("productName")
        if not name:
            continue
        sources = _synchronized_sources(graph, target_id, target, project_root, extensions)
        sources.extend(_build_phase_sources(graph, target, project_root, extensions))
        modules.append(
            ModuleEntry(
                name=name,
                sources=tuple(dedupe(sources)),
                dependencies=tuple(graph.dependency_names(target)),
                kind=product_kind(target.get("productType")),
            )
        )
    return modules


class XcodeProjectStrategy(DiscoveryStrategy):
    name = "xcodeproj"

    def discover(self, project_root: Path) -> list[ModuleEntry] | None:
        bundles = sorted(
            p
            for p in project_root.glob("*.xcodeproj")
            if (p / PBXPROJ_NAME).is_file()
        )
        if not bundles:
            return None
        modules: list[ModuleEntry] = []
        for bundle in bundles:
            modules.extend(parse_xcodeproj(bundle, project_root, self.extensions))
        return modules
