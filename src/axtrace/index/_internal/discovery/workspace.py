"""Xcode workspace (``*.xcworkspace``) discovery.

A workspace only references sub-projects; each referenced ``.xcodeproj`` is
parsed with the pbxproj strategy and its sources expressed relative to the
workspace's project root.
"""

from __future__ import annotations

import os
import xml.etree.ElementTree as ET
from pathlib import Path

import structlog

from axtrace.core.excludes import is_third_party_path
from axtrace.index._internal.discovery.base import DiscoveryStrategy, merge_modules
from axtrace.index._internal.discovery.pbxproj import PBXPROJ_NAME, parse_xcodeproj
from axtrace.index.models import ModuleEntry

log = structlog.get_logger(__name__)

CONTENTS_NAME = "contents.xcworkspacedata"


def _resolve_location(location: str, group_dir: Path, container_dir: Path, bundle: Path) -> Path:
    kind, _, rel = location.partition(":")
    if kind == "group":
        return group_dir / rel
    if kind == "container":
        return container_dir / rel
    if kind == "self":
        return bundle / rel
    if kind == "absolute":
        return Path(rel)
    return container_dir / (rel or location)


def workspace_project_refs(workspace: Path) -> list[Path]:
    """Absolute paths of every ``.xcodeproj`` referenced by a workspace.

    Raises:
        OSError, ET.ParseError: If the contents file is unreadable or not XML.
    """
    tree = ET.parse(workspace / CONTENTS_NAME)
    container_dir = workspace.parent
    refs: list[Path] = []

    def visit(element: ET.Element, group_dir: Path) -> None:
        for child in element:
            location = child.get("location", "")
            if child.tag == "Group":
                sub_dir = (
                    _resolve_location(location, group_dir, container_dir, workspace)
                    if location
                    else group_dir
                )
                visit(child, sub_dir)
            elif child.tag == "FileRef" and location.endswith(".xcodeproj"):
                refs.append(_resolve_location(location, group_dir, container_dir, workspace))

    visit(tree.getroot(), container_dir)
    return refs


class WorkspaceStrategy(DiscoveryStrategy):
    name = "workspace"

    def discover(self, project_root: Path) -> list[ModuleEntry] | None:
        workspaces = sorted(
            p for p in project_root.glob("*.xcworkspace") if (p / CONTENTS_NAME).is_file()
        )
        if not workspaces:
            return None

        modules: list[ModuleEntry] = []
        for workspace in workspaces:
            for bundle in workspace_project_refs(workspace):
                rel = Path(os.path.relpath(bundle, project_root)).as_posix()
                if is_third_party_path(rel):
                    log.debug("workspace.skip_third_party", project=rel)
                    continue
                if not (bundle / PBXPROJ_NAME).is_file():
                    log.debug("workspace.missing_project", project=rel)
                    continue
                modules.extend(parse_xcodeproj(bundle, project_root, self.extensions))
        return merge_modules(modules) if modules else None
