"""Index data models: module graph and per-literal source indexes.

All entries are immutable. ``SourceIndexes`` is the bundle handed to the
matcher and persisted by the index cache; derived lookups (pattern trie,
parent-name index) are rebuilt lazily after deserialization.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from axtrace.index._internal.parsing.trie import PrefixTrie

ProductKind = Literal[
    "application",
    "framework",
    "library",
    "executable",
    "test",
    "extension",
    "macro",
    "plugin",
    "bundle",
    "unknown",
]
TypeKind = Literal["class", "struct", "enum", "actor", "protocol", "extension"]
MatchKind = Literal["exact", "pattern", "localized"]
IdentifierOrigin = Literal[
    "accessibility_identifier",
    "view_id",
    "localization_key",
    "accessibility_label",
    "attributed_string",
]


def normalize_rel_path(path: str) -> str:
    """Posix-style relative path without a leading ``./``."""
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


# =============================================================================
# Module graph
# =============================================================================


@dataclass(frozen=True, slots=True)
class ModuleEntry:
    """A build module/target and the source files it compiles."""

    name: str
    sources: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    kind: ProductKind = "unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "sources": list(self.sources),
            "dependencies": list(self.dependencies),
            "kind": self.kind,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModuleEntry:
        return cls(
            name=data["name"],
            sources=tuple(data.get("sources", ())),
            dependencies=tuple(data.get("dependencies", ())),
            kind=data.get("kind", "unknown"),
        )


@dataclass(slots=True)
class ModuleIndex:
    """The project's module graph plus a reverse file → module lookup.

    When a file is claimed by several modules, the first module registered
    owns it for lookup purposes.
    """

    modules: dict[str, ModuleEntry]
    strategy: str
    _file_to_module: dict[str, str] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        for entry in self.modules.values():
            for path in entry.sources:
                self._file_to_module.setdefault(normalize_rel_path(path), entry.name)

    def module_for_file(self, path: str) -> str | None:
        return self._file_to_module.get(normalize_rel_path(path))

    def sources_for_module(self, name: str) -> tuple[str, ...]:
        entry = self.modules.get(name)
        return entry.sources if entry else ()

    def dependencies_of(self, name: str) -> tuple[str, ...]:
        entry = self.modules.get(name)
        return entry.dependencies if entry else ()

    def all_files(self) -> list[str]:
        """Every distinct source file across modules, sorted."""
        return sorted(self._file_to_module)

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy,
            "modules": [m.to_dict() for m in self.modules.values()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModuleIndex:
        modules = [ModuleEntry.from_dict(m) for m in data.get("modules", [])]
        return cls(modules={m.name: m for m in modules}, strategy=data["strategy"])


# =============================================================================
# Source entries
# =============================================================================


@dataclass(frozen=True, slots=True)
class AssociatedType:
    """``associatedtype Name[: Constraint][ = Default]`` inside a protocol."""

    name: str
    constraint: str | None = None
    default: str | None = None


@dataclass(frozen=True, slots=True)
class TypeEntry:
    """A declared class/struct/enum/actor/protocol, or a synthesized extension."""

    name: str  # qualified: Outer.Inner
    simple_name: str
    file: str
    line: int
    kind: TypeKind
    end_line: int | None = None
    parent: str | None = None
    protocols: tuple[str, ...] = ()
    nesting: tuple[str, ...] = ()
    modifiers: tuple[str, ...] = ()
    associated_types: tuple[AssociatedType, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TypeEntry:
        return cls(
            name=data["name"],
            simple_name=data["simple_name"],
            file=data["file"],
            line=data["line"],
            kind=data["kind"],
            end_line=data.get("end_line"),
            parent=data.get("parent"),
            protocols=tuple(data.get("protocols", ())),
            nesting=tuple(data.get("nesting", ())),
            modifiers=tuple(data.get("modifiers", ())),
            associated_types=tuple(AssociatedType(**a) for a in data.get("associated_types", ())),
        )


@dataclass(frozen=True, slots=True)
class IdentifierEntry:
    """A string literal used as an identifier, localization key or label.

    Dynamic literals (containing an interpolation) have kind ``pattern`` and
    carry the static ``prefix`` before the first interpolation and the static
    ``suffix`` after the last one.
    """

    literal: str
    file: str
    line: int
    context: str
    kind: MatchKind
    origin: IdentifierOrigin
    owner: str | None = None
    prefix: str | None = None
    suffix: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IdentifierEntry:
        return cls(**data)


@dataclass(frozen=True, slots=True)
class LabelEntry:
    """Any other indexed string literal of three or more characters."""

    text: str
    file: str
    line: int
    context: str
    owner: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LabelEntry:
        return cls(**data)


# =============================================================================
# Bundle
# =============================================================================


@dataclass(slots=True)
class SourceIndexes:
    """Module graph plus the type, identifier and label indexes.

    ``types`` is keyed by simple type name, ``identifiers`` by literal (exact
    and localized kinds), ``labels`` by text. Dynamic identifier patterns live
    in ``patterns`` and are served through ``pattern_trie``.
    """

    modules: ModuleIndex
    types: dict[str, list[TypeEntry]] = field(default_factory=dict)
    identifiers: dict[str, list[IdentifierEntry]] = field(default_factory=dict)
    patterns: list[IdentifierEntry] = field(default_factory=list)
    labels: dict[str, list[LabelEntry]] = field(default_factory=dict)
    _trie: PrefixTrie[IdentifierEntry] | None = field(default=None, init=False, repr=False)
    _by_parent: dict[str, list[TypeEntry]] | None = field(
        default=None, init=False, repr=False
    )

    @property
    def pattern_trie(self) -> PrefixTrie[IdentifierEntry]:
        if self._trie is None:
            from axtrace.index._internal.parsing.trie import PrefixTrie

            trie: PrefixTrie[IdentifierEntry] = PrefixTrie()
            for entry in self.patterns:
                trie.insert(entry.prefix or "", entry.suffix or "", entry)
            self._trie = trie
        return self._trie

    def types_with_parent(self, parent: str) -> list[TypeEntry]:
        """Declared classes whose direct superclass is ``parent``."""
        if self._by_parent is None:
            by_parent: dict[str, list[TypeEntry]] = {}
            for entries in self.types.values():
                for entry in entries:
                    if entry.parent:
                        by_parent.setdefault(entry.parent, []).append(entry)
            self._by_parent = by_parent
        return self._by_parent.get(parent, [])

    def iter_types(self) -> list[TypeEntry]:
        return [entry for entries in self.types.values() for entry in entries]

    def to_dict(self) -> dict[str, Any]:
        return {
            "modules": self.modules.to_dict(),
            "types": {k: [e.to_dict() for e in v] for k, v in self.types.items()},
            "identifiers": {k: [e.to_dict() for e in v] for k, v in self.identifiers.items()},
            "patterns": [e.to_dict() for e in self.patterns],
            "labels": {k: [e.to_dict() for e in v] for k, v in self.labels.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceIndexes:
        return cls(
            modules=ModuleIndex.from_dict(data["modules"]),
            types={k: [TypeEntry.from_dict(e) for e in v] for k, v in data["types"].items()},
            identifiers={
                k: [IdentifierEntry.from_dict(e) for e in v]
                for k, v in data["identifiers"].items()
            },
            patterns=[IdentifierEntry.from_dict(e) for e in data["patterns"]],
            labels={k: [LabelEntry.from_dict(e) for e in v] for k, v in data["labels"].items()},
        )
