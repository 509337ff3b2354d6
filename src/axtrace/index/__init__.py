"""Index module - module graph discovery and source indexing.

This module provides:
- Module discovery: XcodeGen, SwiftPM, workspace, Xcode project, directory scan
- Source indexes: type declarations, identifier literals, free-text labels
- Fingerprint cache: unchanged sources skip re-parsing

Public API is in `axtrace.index.ops`. Internal implementations are in
`axtrace.index._internal/`.
"""

from axtrace.index._internal.discovery import build_module_index
from axtrace.index._internal.state import JsonFileStore, KeyValueStore, MemoryStore
from axtrace.index.models import (
    AssociatedType,
    IdentifierEntry,
    LabelEntry,
    ModuleEntry,
    ModuleIndex,
    SourceIndexes,
    TypeEntry,
)
from axtrace.index.ops import build_source_indexes, summarize_indexes

__all__ = [
    # Public API (ops.py)
    "build_module_index",
    "build_source_indexes",
    "summarize_indexes",
    # Storage
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    # Models
    "AssociatedType",
    "IdentifierEntry",
    "LabelEntry",
    "ModuleEntry",
    "ModuleIndex",
    "SourceIndexes",
    "TypeEntry",
]
