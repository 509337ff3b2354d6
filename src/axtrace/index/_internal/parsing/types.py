"""Type declaration index: ``text -> TypeEntry`` plus cross-file extension merge."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from axtrace.index._internal.parsing.declarations import (
    Declaration,
    parse_inheritance,
    scan_declarations,
)
from axtrace.index.models import AssociatedType, TypeEntry


def _to_entry(decl: Declaration, file: str) -> TypeEntry:
    inherited = parse_inheritance(decl.header)
    parent: str | None = None
    protocols = inherited
    if decl.kind == "class" and inherited:
        parent, protocols = inherited[0], inherited[1:]
    return TypeEntry(
        name=decl.qualified_name,
        simple_name=decl.simple_name,
        file=file,
        line=decl.line,
        end_line=decl.end_line,
        kind=decl.kind,  # type: ignore[arg-type]
        parent=parent,
        protocols=tuple(protocols),
        nesting=decl.nesting,
        modifiers=decl.modifiers,
        associated_types=tuple(
            AssociatedType(name=n, constraint=c, default=d) for n, c, d in decl.associated_types
        ),
    )


def parse_types(text: str, file: str) -> list[TypeEntry]:
    """Declarations and extensions of one file, in source order.

    Extensions come back as ``kind="extension"`` entries whose ``protocols``
    are the conformances they add; ``merge_type_entries`` folds them in.
    """
    return [_to_entry(decl, file) for decl in scan_declarations(text)]


def merge_type_entries(entries: Iterable[TypeEntry]) -> dict[str, list[TypeEntry]]:
    """Build the type index keyed by simple name.

    Extensions add conformances to every declaration of the same simple name
    (across files); an extension of an unknown type becomes a minimal
    ``extension`` entry of its own.
    """
    index: dict[str, list[TypeEntry]] = {}
    extensions: list[TypeEntry] = []
    for entry in entries:
        if entry.kind == "extension":
            extensions.append(entry)
        else:
            index.setdefault(entry.simple_name, []).append(entry)

    for ext in extensions:
        existing = index.get(ext.simple_name)
        if not existing:
            index[ext.simple_name] = [ext]
            continue
        merged: list[TypeEntry] = []
        for entry in existing:
            added = tuple(
                p for p in ext.protocols if p not in entry.protocols and p != entry.parent
            )
            merged.append(replace(entry, protocols=entry.protocols + added) if added else entry)
        index[ext.simple_name] = merged
    return index
