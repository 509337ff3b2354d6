"""Dot-segment prefix trie for dynamic identifier patterns.

A dynamic literal such as ``"row.\\(index).title"`` is split at its first
interpolation into a static prefix (``"row."``) and at its last one into a
static suffix (``".title"``). The prefix's complete dot segments form the trie
path; the trailing partial segment (``"card-"`` in ``"card-\\(id)"``) is kept
as a *stem* the next identifier segment must start with.

Lookup walks the identifier's segments from the longest candidate path to the
shortest (at least one static segment), so the longest prefix wins.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class _Node(Generic[T]):
    children: dict[str, _Node[T]] = field(default_factory=dict)
    entries: list[tuple[str, str, T]] = field(default_factory=list)


class PrefixTrie(Generic[T]):
    """Maps dynamic ``prefix ... suffix`` patterns to arbitrary values."""

    def __init__(self) -> None:
        self._root: _Node[T] = _Node()
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def insert(self, prefix: str, suffix: str, value: T) -> bool:
        """Register a pattern. Returns False when the prefix has no complete segment."""
        segments = prefix.split(".")
        path, stem = segments[:-1], segments[-1]
        if not path or any(not s for s in path):
            return False
        node = self._root
        for segment in path:
            node = node.children.setdefault(segment, _Node())
        node.entries.append((stem, suffix, value))
        self._size += 1
        return True

    def lookup(self, identifier: str) -> list[T]:
        """Values whose pattern matches ``identifier`` at the deepest matching path.

        Among hits at that depth, only the most specific patterns (longest
        combined stem and suffix) are returned.
        """
        segments = identifier.split(".")
        for depth in range(len(segments) - 1, 0, -1):
            node = self._walk(segments[:depth])
            if node is None or not node.entries:
                continue
            rest = ".".join(segments[depth:])
            hits = [
                (len(stem) + len(suffix), value)
                for stem, suffix, value in node.entries
                if len(rest) > len(stem) + len(suffix)
                and rest.startswith(stem)
                and rest.endswith(suffix)
            ]
            if hits:
                best = max(score for score, _ in hits)
                return [value for score, value in hits if score == best]
        return []

    def values(self) -> Iterator[T]:
        stack = [self._root]
        while stack:
            node = stack.pop()
            for _, _, value in node.entries:
                yield value
            stack.extend(node.children.values())

    def _walk(self, path: list[str]) -> _Node[T] | None:
        node = self._root
        for segment in path:
            child = node.children.get(segment)
            if child is None:
                return None
            node = child
        return node
